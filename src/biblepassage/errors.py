
from typing import Optional


class PassageError(ValueError):
    """ Base class for everything that can go wrong parsing or building a
        passage. Carries the offending text and whatever book, chapter and
        verse were known when the error was raised. """

    def __init__(self, msg: str, text: Optional[str] = None, book: Optional[str] = None,
                 chapter: Optional[int] = None, verse: Optional[int] = None):
        super().__init__(msg)
        self.msg = msg
        self.text = text
        self.book = book
        self.chapter = chapter
        self.verse = verse

    def __str__(self):
        return self.msg

# Grammar level failures are also SyntaxErrors

class EmptyInput(PassageError, SyntaxError):
    pass

class MalformedRange(PassageError, SyntaxError):
    pass

class UnparsableClause(PassageError, SyntaxError):
    pass

class UnknownBook(PassageError, SyntaxError):
    pass

# Structural failures

class ChapterOutOfRange(PassageError):
    pass

class VerseOutOfRange(PassageError):
    pass

class InvalidFragment(PassageError):
    pass

class InvertedRange(PassageError):
    pass
