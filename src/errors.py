"""Exception types raised by the properties remapper."""
from typing import Optional


class RemapperError(Exception):
    """Base class for every fatal remapper error."""


class InvalidArgumentsError(RemapperError, ValueError):
    """A required path argument was missing or empty."""


class IOFailureError(RemapperError):
    """A source could not be read or the destination could not be written."""


class UnexpectedEndOfInputError(RemapperError):
    """The input ended while a continued entry was still open."""

    def __init__(self, source: Optional[str] = None):
        self.source = source
        where = f" of {source}" if source else ""
        super().__init__(f"Unexpected end{where}: the last entry ends with a line continuation.")


class MalformedEntryError(RemapperError, ValueError):
    """A code line could not be split into a key and a message."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Could not extract a key/value pair from entry: {text!r}")


class RemapParseError(RemapperError, ValueError):
    """The remap specification is not well formed."""
