#!/usr/bin/env python3

from typing import Optional, Tuple
import json
from collections import UserList
from biblepassage.books import Book, BookRegistry, KEYBOUND, default_registry
from biblepassage.errors import ChapterOutOfRange, VerseOutOfRange, InvalidFragment, InvertedRange

fragments = ("a", "b", "c")


class Environment:
    """ Separators used to read and write references. Treated as immutable
        once handed to a parser. """
    separators: Tuple[str, ...] = ("&", ",", ";", "and")
    rangemk: str = "-"
    cvsep: str = ":"            # after chap before verse
    bookspace: str = " "        # after the book
    booksep: str = " - "        # between the two ends of a cross book range
    listsep: str = "; "         # between passages in a list
    __allfields__ = "separators rangemk cvsep bookspace booksep listsep".split()

    def __init__(self, **kw):
        for k, v in kw.items():
            if k not in self.__allfields__:
                raise TypeError(f"Unknown environment setting {k}")
            setattr(self, k, tuple(v) if k == "separators" else v)
        if not len(self.separators):
            raise ValueError("At least one separator is required")

    def copy(self, **kw):
        res = {a: kw[a] if a in kw else getattr(self, a) for a in self.__allfields__}
        return self.__class__(**res)

    def __repr__(self):
        return "Environment({})".format(", ".join(f"{a}={getattr(self, a)!r}" for a in self.__allfields__))

_defaultenv = Environment()


class Reference:
    """ A validated point in scripture. verse 0 means the whole chapter and is
        only used for display. """
    book: Book
    chapter: int
    verse: int = 0
    fragment: Optional[str] = None

    def __init__(self, book: Book, chapter: int, verse: int = 0, fragment: Optional[str] = None):
        if not book.haschapter(chapter):
            raise ChapterOutOfRange(f"Chapter {chapter} does not exist in {book.name}",
                                    book=book.name, chapter=chapter, verse=verse)
        if verse < 0 or verse > book.versesinchapter(chapter):
            raise VerseOutOfRange(f"Verse {verse} does not exist in chapter {chapter} of book {book.name}",
                                  book=book.name, chapter=chapter, verse=verse)
        if fragment:
            fragment = fragment.lower()
            if fragment not in fragments:
                raise InvalidFragment(f"Invalid fragment '{fragment}' in {book.name} {chapter}:{verse}",
                                      text=fragment, book=book.name, chapter=chapter, verse=verse)
        self.book = book
        self.chapter = chapter
        self.verse = verse
        self.fragment = fragment or None

    @classmethod
    def fromkey(cls, key: int, registry: Optional[BookRegistry] = None) -> "Reference":
        """ Parses an int BBBCCCVVV into a reference """
        v = key % KEYBOUND
        c = (key // KEYBOUND) % KEYBOUND
        b = key // (KEYBOUND * KEYBOUND)
        return cls((registry or default_registry()).bynumber(b), c, v)

    def key(self) -> int:
        """ Returns an integer BBBCCCVVV that orders references across the canon """
        return (self.book.number * KEYBOUND + self.chapter) * KEYBOUND + self.verse

    def _sortkey(self):
        return (self.key(), self.fragment or "")

    def __eq__(self, o):
        if not isinstance(o, Reference):
            return False
        return self.book == o.book and self.chapter == o.chapter and self.verse == o.verse \
                and self.fragment == o.fragment

    def __lt__(self, o):
        return self._sortkey() < o._sortkey()

    def __le__(self, o):
        return self._sortkey() <= o._sortkey()

    def __gt__(self, o):
        return self._sortkey() > o._sortkey()

    def __ge__(self, o):
        return self._sortkey() >= o._sortkey()

    def __hash__(self):
        return hash(self._sortkey())

    def __str__(self):
        return self.str()

    def __repr__(self):
        return "Reference('" + self.str() + "')"

    def str(self, env: Optional[Environment] = None, name: Optional[str] = None) -> str:
        env = env or _defaultenv
        if name is None:
            name = self.book.name
        return name + env.bookspace + self.cv(env)

    def cv(self, env: Optional[Environment] = None) -> str:
        """ chapter:verse and fragment, or just the chapter for a whole chapter """
        env = env or _defaultenv
        if self.verse == 0:
            return str(self.chapter)
        return "{}{}{}".format(self.chapter, env.cvsep, self.vf())

    def vf(self) -> str:
        return str(self.verse) + (self.fragment or "")

    def copy(self, **kw):
        res = {a: getattr(self, a) for a in ("book", "chapter", "verse", "fragment")}
        res.update(kw)
        return self.__class__(**res)

    def isstartofchapter(self) -> bool:
        return self.verse <= 1 and not self.fragment

    def isendofchapter(self) -> bool:
        return self.verse == self.book.versesinchapter(self.chapter) and not self.fragment

    def nextverse(self, registry: Optional[BookRegistry] = None, thisbook: bool = False) -> Optional["Reference"]:
        """ Returns the verse following this one, moving into the next chapter
            and book as needed. Returns None past the end of the canon, or past
            the end of the book if thisbook is set. """
        if self.verse < self.book.versesinchapter(self.chapter):
            return self.__class__(self.book, self.chapter, self.verse + 1)
        if self.chapter < self.book.chaptersinbook():
            return self.__class__(self.book, self.chapter + 1, 1)
        if thisbook:
            return None
        registry = registry or default_registry()
        nums = sorted(b.number for b in registry if b.number > self.book.number)
        if not len(nums):
            return None
        return self.__class__(registry.bynumber(nums[0]), 1, 1)


class Passage:
    """ An inclusive range of references, first to last """

    def __init__(self, first: Reference, last: Optional[Reference] = None, registry: Optional[BookRegistry] = None):
        if last is None:
            last = first
        if first.key() > last.key():
            raise InvertedRange(f"References end is before beginning: {first} - {last}",
                                book=first.book.name, chapter=first.chapter, verse=first.verse)
        self.first = first
        self.last = last
        self.registry = registry

    @classmethod
    def wholebook(cls, book: Book, **kw):
        last = book.chaptersinbook()
        return cls(Reference(book, 1, 1), Reference(book, last, book.versesinchapter(last)), **kw)

    @classmethod
    def wholechapter(cls, book: Book, chapter: int, **kw):
        return cls(Reference(book, chapter, 1), Reference(book, chapter, book.versesinchapter(chapter)), **kw)

    def __eq__(self, o):
        if not isinstance(o, Passage):
            return False
        return self.first == o.first and self.last == o.last

    def __hash__(self):
        return hash((self.first, self.last))

    def __lt__(self, o):
        return (self.first, self.last) < (o.first, o.last)

    def _upper(self) -> Reference:
        """ last, with a whole chapter widened to its final verse """
        if self.last.verse == 0:
            return self.last.copy(verse=self.last.book.versesinchapter(self.last.chapter))
        return self.last

    def __contains__(self, r):
        """ Tests for entire containment of a reference or passage """
        if isinstance(r, Passage):
            return self.first <= r.first and r._upper() <= self._upper()
        if r.verse == 0:
            r = Passage.wholechapter(r.book, r.chapter)
            return r in self
        return self.first <= r <= self._upper()

    def __iter__(self):
        """ Yields every verse from first to last """
        r = self.first.copy(verse=max(self.first.verse, 1))
        end = self._upper().key()
        while r is not None and r.key() <= end:
            yield r
            r = r.nextverse(registry=self.registry)

    def __str__(self):
        return self.format()

    def __repr__(self):
        return "Passage({!r}-{!r})".format(self.first, self.last)

    def format(self, env: Optional[Environment] = None) -> str:
        """ Returns the canonical text for the passage """
        env = env or _defaultenv
        first = self.first
        last = self.last
        samebook = first.book == last.book
        samechap = samebook and first.chapter == last.chapter

        # Genesis
        if samebook and first.chapter == 1 and first.isstartofchapter() \
                and last.chapter == last.book.chaptersinbook() and last.isendofchapter():
            return first.book.name

        # Psalm 23
        if samechap and not first.fragment and (first.verse == 0 or (first.verse == 1 and last.isendofchapter())):
            return first.book.singular + env.bookspace + str(first.chapter)

        # John 3:16
        if samechap and first.verse == last.verse and first.fragment == last.fragment:
            return first.str(env, name=first.book.singular)

        # John 3:16-18
        if samechap:
            return first.str(env, name=first.book.singular) + env.rangemk + last.vf()

        # Genesis 1:1 - Exodus 5:2
        if not samebook:
            return first.str(env) + env.booksep + last.str(env)

        # Psalms 120-134
        if first.isstartofchapter() and last.isendofchapter():
            return first.book.name + env.bookspace + "{}{}{}".format(first.chapter, env.rangemk, last.chapter)

        # Psalm 117:2-118:1
        return first.str(env, name=first.book.singular) + env.rangemk + last.cv(env)

    def refs(self) -> Tuple[Reference, Reference]:
        return (self.first, self.last)


class PassageList(UserList):
    """ The ordered passages of a parsed reference string """

    def __str__(self):
        return self.str()

    def str(self, env: Optional[Environment] = None) -> str:
        env = env or _defaultenv
        return env.listsep.join(p.format(env) for p in self)

    def allrefs(self):
        for p in self:
            yield from p


class PassageJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Reference):
            return {"book": obj.book.name, "chapter": obj.chapter, "verse": obj.verse,
                    "fragment": obj.fragment, "key": obj.key()}
        elif isinstance(obj, Passage):
            return {"passage": obj.format(), "from": self.default(obj.first), "to": self.default(obj.last)}
        elif isinstance(obj, PassageList):
            return list(obj)
        return super().default(obj)
