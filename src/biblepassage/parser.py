
import re
from dataclasses import dataclass
from typing import Optional, Tuple, List
from biblepassage.books import Book, BookRegistry, default_registry
from biblepassage.reference import Reference, Passage, PassageList, Environment, _defaultenv
from biblepassage.errors import PassageError, EmptyInput, MalformedRange, UnparsableClause, \
        UnknownBook
import logging

logger = logging.getLogger(__name__)

# Applied in order to the whole input before it is split into clauses
_substitutions = [
    (r"([a-z])([0-9])", r"\1 \2"),                  # john3 -> john 3
    (r"([0-9])([d-z])", r"\1 \2"),                  # 3v16 -> 3 v16, leaves fragments alone
    (r"[\u2013\u2014]", "-"),                # en and em dashes
    (r"[^a-z]to[^a-z]", "-"),
    (r"([^a-z])chapter([^a-z])", r"\1ch\2"),
    (r"([^a-z0-9])c([^a-z])", r"\1ch\2"),           # c3v16, but not 16c-17
    (r"([^a-z])verses?([^a-z])", r"\1 v \2"),
    (r"(^|; *|-)([0-9])([a-z]{2})", r"\1 \2 \3"),  # 1cor -> 1 cor, but not -8a
]
_resubs = [(re.compile(p, flags=re.I), r) for p, r in _substitutions]

_clausere = re.compile(r"""^\s*(?P<book>(?:[0-9]+\s+)?[^0-9]+)?
        (?:(?P<numeric>[0-9]+[abc]?)?
           (?:\s*[.\ :v]+\s*(?P<verse>[0-9]+[abc]?|end))?
        )?\s*$""", flags=re.X)
_booksuffixre = re.compile(r"^(.*?)\s+(?:v|verses?)$")
_letters = re.compile(r"[a-z]")
_numre = re.compile(r"^([0-9]+)([abc]?)$", flags=re.I)
_runbookre = re.compile(r"^([0-9])([a-z]{2})", flags=re.I)   # 1cor at the start of any clause


def normalise(s: str) -> str:
    """ Rewrites the surface forms of chapter and verse markers, dashes and
        run together book numbers into a form the clause grammar can read """
    for r, t in _resubs:
        s = r.sub(t, s)
    return s

def splitclauses(s: str, separators=None) -> List[str]:
    """ Splits on any of the separators, the first being canonical. Empty
        clauses are dropped. """
    if not separators:
        separators = _defaultenv.separators
    first = separators[0]
    for sep in separators[1:]:
        s = s.replace(sep, first)
    return [c.strip() for c in s.split(first) if c.strip()]


@dataclass(frozen=True)
class ClauseFields:
    """ The raw pieces of one half of a clause """
    book: Optional[str] = None
    numeric: Optional[str] = None
    verse: Optional[str] = None
    explicitverse: bool = False

def parseclause(s: str) -> ClauseFields:
    if s is None or not s.strip():
        raise UnparsableClause("Empty reference", text=s)
    m = _clausere.match(s.lower())
    if m is None:
        raise UnparsableClause(f"Can't parse '{s.strip()}'", text=s)
    book, numeric, verse = (m.group(x) for x in ("book", "numeric", "verse"))
    book = book.strip() if book else None
    explicit = False
    if book in ("start", "end") and numeric is None and verse is None:
        numeric, book = book, None
    if book and book.endswith(" ch"):
        b = book[:-3].strip()
        if _letters.search(b):
            book = b
    if book and (bm := _booksuffixre.match(book)) and _letters.search(bm.group(1)):
        book = bm.group(1).strip()
        if verse is None:
            # Obadiah v 3: a single chapter book with the verse marked
            verse = numeric
            numeric = "1"
            explicit = True
    return ClauseFields(book or None, numeric, verse, explicit)

def parsenumber(s: str) -> Tuple[int, Optional[str]]:
    """ Splits 16b into (16, 'b') """
    m = _numre.match(s.strip())
    if m is None:
        raise UnparsableClause(f"Bad number '{s}'", text=s)
    return int(m.group(1)), m.group(2).lower() or None


@dataclass(frozen=True)
class ParseState:
    """ What the previous clause established, carried into the next """
    book: Optional[Book] = None
    chapter: Optional[int] = None
    verse: Optional[int] = None


class PassageParser:
    """ Parses free text references like "1 John 5:4-17, 19-21 & Esther 2"
        into a PassageList. Instances hold no parse state and may be reused. """

    def __init__(self, registry: Optional[BookRegistry] = None, env: Optional[Environment] = None):
        self.registry = registry if registry is not None else default_registry()
        self.env = env or _defaultenv

    def parse(self, text: str) -> PassageList:
        if text is None or not text.strip():
            raise EmptyInput("Empty reference string", text=text)
        s = normalise(text)
        clauses = splitclauses(s, self.env.separators)
        if not len(clauses):
            raise EmptyInput(f"No references in '{text}'", text=text)
        res = PassageList()
        state = ParseState()
        for c in clauses:
            p, state = self.resolve(c, state)
            res.append(p)
        return res

    def resolve(self, clause: str, state: ParseState) -> Tuple[Passage, ParseState]:
        """ Resolves one clause against the carried state, returning the
            passage and the state for the next clause """
        s = _runbookre.sub(r"\1 \2", clause)
        try:
            halves = s.split(self.env.rangemk)
            if len(halves) > 2:
                raise MalformedRange(f"Range is too complex: '{clause}'")
            first, state = self._start(parseclause(halves[0]), state)
            if len(halves) == 1:
                last = self._noend(first, state)
            else:
                last, state = self._end(parseclause(halves[1]), state, first)
            res = Passage(first, last, registry=self.registry)
        except PassageError as e:
            if e.text is None:
                e.text = clause
            raise
        logger.debug(f"{clause!r} -> {res!r} carrying {state}")
        return res, state

    def _chapter(self, s: str, book: Book) -> int:
        if s == "end":
            return book.chaptersinbook()
        if s == "start":
            return 1
        return parsenumber(s)[0]

    def _verse(self, s: str, book: Book, chapter: Optional[int]) -> Tuple[int, Optional[str]]:
        if s == "end":
            return (book.versesinchapter(chapter or 1), None)
        if s == "start":
            return (1, None)
        return parsenumber(s)

    def _start(self, f: ClauseFields, state: ParseState) -> Tuple[Reference, ParseState]:
        if f.book is not None:
            book = self.registry.lookup(f.book)
            carriedchap = carriedverse = None
        elif state.book is None:
            raise UnknownBook("No book given")
        else:
            book = state.book
            carriedchap, carriedverse = state.chapter, state.verse
        chapter = verse = fragment = None
        if f.numeric is not None:
            if f.explicitverse and book.chaptersinbook() == 1:
                n, fragment = self._verse(f.numeric, book, 1)
                if 0 < n <= book.versesinchapter(1):
                    verse = n
                else:
                    chapter = n
            elif carriedverse is None or f.verse is not None:
                chapter = self._chapter(f.numeric, book)
            else:
                verse, fragment = self._verse(f.numeric, book, carriedchap)
        if f.verse is not None:
            if chapter is None and book.chaptersinbook() == 1:
                verse, fragment = self._verse(f.verse, book, 1)
            elif chapter is None:
                chapter = self._chapter(f.verse, book)
            else:
                verse, fragment = self._verse(f.verse, book, chapter)
        if chapter is None:
            chapter = carriedchap
        first = Reference(book, chapter or 1, verse or 1, fragment)
        return first, ParseState(book, chapter, verse)

    def _noend(self, first: Reference, state: ParseState) -> Reference:
        if state.verse is not None:
            return first
        book = first.book
        chapter = state.chapter if state.chapter is not None else book.chaptersinbook()
        return Reference(book, chapter, book.versesinchapter(chapter))

    def _end(self, f: ClauseFields, state: ParseState, first: Reference) -> Tuple[Reference, ParseState]:
        hadverse = state.verse is not None
        if f.book is not None:
            book = self.registry.lookup(f.book)
            carriedchap = None
        else:
            book = state.book
            carriedchap = state.chapter
        chapter = verse = fragment = None
        if f.numeric is not None:
            if hadverse and f.verse is None and f.book is None:
                verse, fragment = self._verse(f.numeric, book, carriedchap or first.chapter)
            else:
                chapter = self._chapter(f.numeric, book)
        if chapter is not None:
            refchap = chapter
        elif carriedchap is not None:
            refchap = carriedchap
        elif hadverse and f.book is None:
            refchap = first.chapter
        else:
            refchap = book.chaptersinbook()
        if f.verse is not None:
            verse, fragment = self._verse(f.verse, book, refchap)
        last = Reference(book, refchap, verse if verse is not None else book.versesinchapter(refchap), fragment)
        return last, ParseState(book, chapter if chapter is not None else carriedchap, verse)
