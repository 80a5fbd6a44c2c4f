
import os
import logging

logger = logging.getLogger(__name__)

def datafile(fname):
    """ Returns the path of a data file shipped alongside this package """
    return os.path.join(os.path.dirname(__file__), fname)

def readsrc(src):
    if hasattr(src, "read"):
        return src.read()
    elif not isinstance(src, str):      # already parsed data
        return src
    elif len(src) < 256 and os.path.exists(src):
        logger.debug(f"Reading {src}")
        with open(src, encoding="utf-8") as inf:
            data = inf.read()
        return data
    elif "\n" in src or len(src) > 255:
        return src
    else:
        raise FileNotFoundError(src)
