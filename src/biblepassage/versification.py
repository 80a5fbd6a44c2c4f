
import re, os
from biblepassage.utils import readsrc, datafile
import logging

logger = logging.getLogger(__name__)

versifications = {}

def cached_versification(fname):
    """ Returns a Versification from a file path or the name of a shipped .vrs
        file (e.g. "eng"), loading it only once """
    if fname is None:
        return None
    if fname not in versifications:
        if os.path.exists(fname):
            versifications[fname] = Versification(fname)
        else:
            fpath = datafile(fname + ".vrs")
            if os.path.exists(fpath):
                versifications[fname] = Versification(fpath)
    return versifications.get(fname, None)

class Versification:
    """ Chapter structure of each book, read from a Paratext style .vrs file.
        Each book line is a book code followed by chapter:lastverse pairs:
            GEN 1:31 2:25 3:24 ...
    """

    def __init__(self, fname=None):
        self.chapters = {}      # chapter -> verse count keyed by book code
        self.name = None
        if fname is not None:
            self.readFile(fname)

    def __getitem__(self, bk):
        return self.chapters.get(bk, None)

    def __contains__(self, bk):
        return bk in self.chapters

    def __iter__(self):
        return iter(self.chapters)

    def __len__(self):
        return len(self.chapters)

    def readFile(self, fname):
        logger.debug(f"versification readFile({fname})")
        srcdat = readsrc(fname)
        for li in srcdat.splitlines():
            l = li.strip()
            if self.name is None and (m := re.match(r'^#\s+versification\s*"(.*?)"', l, flags=re.I)):
                self.name = m.group(1)
                continue
            l = re.sub(r"#!\s*", "", l)     # remove the magic #!
            l = re.sub(r"\s*#.*$", "", l)   # strip comments
            if not l:
                continue
            if "=" in l or l.startswith("-") or l.startswith("*"):
                # verse mappings, exclusions and segments do not change chapter sizes
                continue
            b = l.split()
            cvs = {}
            for x in b[1:]:
                try:
                    c, v = x.split(":")
                    cvs[int(c)] = int(v)
                except ValueError:
                    raise SyntaxError(f"Bad chapter:verse entry {x} for {b[0]} in {fname}")
            self.chapters[b[0]] = cvs

    def chaptersinbook(self, bk):
        return len(self.chapters.get(bk, {}))

    def versesinchapter(self, bk, chap):
        return self.chapters.get(bk, {}).get(chap, None)

