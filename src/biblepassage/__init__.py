
import json
import logging
from biblepassage.errors import PassageError, EmptyInput, MalformedRange, UnparsableClause, UnknownBook, \
        ChapterOutOfRange, VerseOutOfRange, InvalidFragment, InvertedRange
from biblepassage.books import Book, BookRegistry, standardise, loadbooks, default_registry
from biblepassage.reference import Environment, Reference, Passage, PassageList, PassageJSONEncoder
from biblepassage.parser import PassageParser, ParseState, normalise, splitclauses, parseclause, parsenumber

logger = logging.getLogger(__name__)

_parser = None

def parse(text: str) -> PassageList:
    """ Parses a reference string using the shipped English book table """
    global _parser
    if _parser is None:
        _parser = PassageParser()
    return _parser.parse(text)


def main(argv=None):

    import argparse, sys

    parser = argparse.ArgumentParser(description="Parse scripture references and print them in canonical form")
    parser.add_argument("refs", nargs="+", help="Reference strings to parse")
    parser.add_argument("-j", "--json", action="store_true", help="Output each parse as JSON")
    parser.add_argument("-s", "--sep", action="append", default=[],
                        help="Clause separator (repeatable, the first is canonical) [& , ; and]")
    parser.add_argument("--books", help="JSON book table to use")
    parser.add_argument("--vrs", help="Versification file, or the name of a shipped one [eng]")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    parser.add_argument("-l", "--logfile", help="Write log messages to this file")
    args = parser.parse_args(argv)

    if args.verbose or args.logfile:
        parms = {'level': logging.DEBUG if args.verbose else logging.WARNING, 'datefmt': '%d/%b/%Y %H:%M:%S',
                 'format': '%(asctime)s.%(msecs)03d %(levelname)s:%(module)s(%(lineno)d) %(message)s'}
        if args.logfile:
            parms.update(filename=args.logfile, filemode="w", encoding="utf-8")
        logging.basicConfig(**parms)

    try:
        registry = loadbooks(args.books, args.vrs) if args.books or args.vrs else None
    except (OSError, ValueError, SyntaxError) as e:
        print(f"Can't load book data: {e}", file=sys.stderr)
        return 2
    env = Environment(separators=args.sep) if len(args.sep) else None
    p = PassageParser(registry=registry, env=env)

    res = 0
    for r in args.refs:
        try:
            passages = p.parse(r)
        except PassageError as e:
            print(f"{r}: {e}", file=sys.stderr)
            res = 1
            continue
        logger.debug(f"{r!r} -> {passages!r}")
        if args.json:
            print(json.dumps(passages, cls=PassageJSONEncoder, ensure_ascii=False))
        else:
            print(passages.str(env))
    return res
