
import re, json
from types import MappingProxyType
from dataclasses import dataclass, field
from typing import Optional, Dict, Mapping, Tuple
from biblepassage.utils import readsrc, datafile
from biblepassage.versification import Versification, cached_versification
from biblepassage.errors import UnknownBook, ChapterOutOfRange
import logging

logger = logging.getLogger(__name__)

# chapter and verse numbers must stay below this for Reference.key() to order correctly
KEYBOUND = 1000

_nonkey = re.compile(r"[^a-z0-9 ]")

def standardise(s: str) -> str:
    """ Normalises a book name or abbreviation for lookup """
    return _nonkey.sub("", s.strip().lower())


@dataclass(frozen=True)
class Book:
    number: int
    code: str
    name: str
    singular: str
    abbreviations: Tuple[str, ...] = ()
    chapters: Mapping[int, int] = field(default_factory=dict, compare=False, hash=False)

    def __str__(self):
        return self.name

    def __repr__(self):
        return "Book({}, '{}')".format(self.number, self.name)

    def chaptersinbook(self) -> int:
        return len(self.chapters)

    def versesinchapter(self, chapter: int) -> int:
        try:
            return self.chapters[chapter]
        except KeyError:
            raise ChapterOutOfRange(f"Chapter {chapter} does not exist in {self.name}",
                                    book=self.name, chapter=chapter) from None

    def haschapter(self, chapter: int) -> bool:
        return chapter in self.chapters


class BookRegistry:
    """ Immutable index of books by number, code, name and abbreviation.

        table is keyed by book number, each entry holding name, singular,
        abbreviations and chapters (chapter -> verse count). Lookups by name
        ignore case, punctuation and surrounding space. """

    def __init__(self, table: Dict[int, dict]):
        self._books = {}
        self._codes = {}
        self._names = {}
        for num, bd in sorted((int(k), v) for k, v in table.items()):
            chapters = MappingProxyType({int(c): int(v) for c, v in bd["chapters"].items()})
            self._checkstructure(bd["name"], chapters)
            bk = Book(num, bd.get("code", ""), bd["name"], bd.get("singular", bd["name"]),
                      tuple(bd.get("abbreviations", ())), chapters)
            self._books[num] = bk
            if bk.code:
                self._codes[bk.code.upper()] = bk
            for a in (bk.name,) + bk.abbreviations:
                k = standardise(a)
                if self._names.get(k, bk) is not bk:
                    raise ValueError(f"'{a}' is claimed by both {self._names[k].name} and {bk.name}")
                self._names[k] = bk
        logger.debug(f"Registered {len(self._books)} books under {len(self._names)} names")

    @staticmethod
    def _checkstructure(name, chapters):
        if not len(chapters):
            raise ValueError(f"{name} has no chapters")
        if sorted(chapters.keys()) != list(range(1, len(chapters) + 1)):
            raise ValueError(f"{name} chapters are not contiguous from 1")
        if len(chapters) >= KEYBOUND:
            raise ValueError(f"{name} has {len(chapters)} chapters, at most {KEYBOUND-1} are supported")
        for c, v in chapters.items():
            if v < 1:
                raise ValueError(f"{name} {c} has no verses")
            if v >= KEYBOUND:
                raise ValueError(f"{name} {c} has {v} verses, at most {KEYBOUND-1} are supported")

    def __getitem__(self, name: str) -> Book:
        return self.lookup(name)

    def __contains__(self, name):
        return name is not None and standardise(name) in self._names

    def __iter__(self):
        return iter(self._books[k] for k in sorted(self._books))

    def __len__(self):
        return len(self._books)

    def lookup(self, name: Optional[str]) -> Book:
        """ Returns the book for a name or abbreviation """
        bk = self._names.get(standardise(name or ""), None)
        if bk is None:
            raise UnknownBook(f'Invalid book name "{name or ""}"', text=name)
        return bk

    def bynumber(self, num: int) -> Book:
        try:
            return self._books[num]
        except KeyError:
            raise UnknownBook(f'Invalid book number "{num}"') from None

    def bycode(self, code: str) -> Book:
        try:
            return self._codes[code.upper()]
        except KeyError:
            raise UnknownBook(f'Invalid book code "{code}"', text=code) from None

    def chaptersinbook(self, book: Book) -> int:
        return book.chaptersinbook()

    def versesinchapter(self, book: Book, chapter: int) -> int:
        return book.versesinchapter(chapter)


def loadbooks(bookfile=None, vrsfile=None) -> BookRegistry:
    """ Reads a JSON book table and a .vrs versification and joins them on the
        book code. Either may be a path, a file object or the data itself.
        vrsfile may also be the name of a shipped versification (e.g. "eng"). """
    if bookfile is None:
        bookfile = datafile("books.json")
    data = readsrc(bookfile)
    table = json.loads(data) if isinstance(data, (str, bytes)) else data
    if vrsfile is None:
        vrsfile = "eng"
    if isinstance(vrsfile, Versification):
        vrs = vrsfile
    elif isinstance(vrsfile, str) and "\n" not in vrsfile:
        vrs = cached_versification(vrsfile)
        if vrs is None:
            raise FileNotFoundError(vrsfile)
    else:
        vrs = Versification(vrsfile)
    res = {}
    for num, bd in table.items():
        entry = dict(bd)
        if "chapters" not in entry:
            if entry.get("code", None) not in vrs:
                raise ValueError(f"No chapter structure for {entry.get('name')} ({entry.get('code')})")
            entry["chapters"] = vrs[entry["code"]]
        res[int(num)] = entry
    return BookRegistry(res)

_default = None

def default_registry() -> BookRegistry:
    """ The registry built from the shipped English book table """
    global _default
    if _default is None:
        _default = loadbooks()
    return _default
