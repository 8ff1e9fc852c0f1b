import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

from src.errors import MalformedEntryError, UnexpectedEndOfInputError

BOM = '\ufeff'
COMMENT_PREFIXES = ('#', '!')
PRIVATE_COMMENT_PREFIX = '!'
_SEPARATORS = ('=', ':')
_LINE_BREAK_RE = re.compile(r'\r\n|\r|\n')

# Separators of the properties grammar; other Unicode spaces are content.
_WHITESPACE = ' \t\f'
# Characters a Java-style trim() removes: everything up to and including the space.
_TRIM_CHARS = ''.join(chr(code) for code in range(0x21))

# Entry parser states
_KEY = 'key'
_KEY_ESCAPE = 'key_escape'
_SEPARATOR = 'separator'


@dataclass(frozen=True)
class Directive:
    """A comment or blank line, copied verbatim when kept on output."""
    raw: str
    keep_on_output: bool


@dataclass(frozen=True)
class Entry:
    """One or more physical lines forming a single ``code=message`` entry."""
    lines: Tuple[str, ...]

    @property
    def raw_joined(self) -> str:
        return ''.join(self.lines)


LogicalLine = Union[Directive, Entry]


@dataclass(frozen=True)
class Message:
    """
    A message value together with the places it was continued.

    ``text`` is the logical value with continuation markers removed.
    ``breaks`` holds one ``(offset, whitespace)`` pair per continuation:
    the offset into ``text`` where the next physical line started and the
    leading whitespace that line carried.
    """
    text: str
    breaks: Tuple[Tuple[int, str], ...] = ()

    def render(self, newline: str = '\n') -> str:
        """Re-expand every recorded continuation into a backslash and a line break."""
        if not self.breaks:
            return self.text
        parts = []
        start = 0
        for offset, whitespace in self.breaks:
            parts.append(self.text[start:offset])
            parts.append('\\' + newline + whitespace)
            start = offset
        parts.append(self.text[start:])
        return ''.join(parts)


@dataclass(frozen=True)
class ParsedEntry:
    code: str
    message: Message

    def to_line(self, code: Optional[str] = None, newline: str = '\n') -> str:
        """Render as ``code=message``, optionally under a different code."""
        return f"{self.code if code is None else code}={self.message.render(newline)}"


def _has_unescaped_trailing_backslash(s: str) -> bool:
    """Check if a string ends with an odd number of backslashes."""
    if not s.endswith('\\'):
        return False
    # Count trailing backslashes
    count = 0
    i = len(s) - 1
    while i >= 0 and s[i] == '\\':
        count += 1
        i -= 1
    # An odd number of trailing backslashes indicates an unescaped one
    return count % 2 == 1


def _trim(line: str) -> str:
    return line.strip(_TRIM_CHARS)


def is_comment(line: str) -> bool:
    return _trim(line).startswith(COMMENT_PREFIXES)


def is_blank(line: str) -> bool:
    return not _trim(line)


def is_continuation_trigger(line: str) -> bool:
    """
    Check whether a physical line continues onto the next one.

    Comments and blank lines never continue. Otherwise the trimmed line must
    end in an odd number of backslashes; ``\\\\`` is an escaped backslash.
    """
    if is_comment(line) or is_blank(line):
        return False
    return _has_unescaped_trailing_backslash(_trim(line))


def join_lines(lines: Iterable[str], source: Optional[str] = None) -> List[LogicalLine]:
    """
    Group physical lines into logical lines.

    Args:
        lines: Physical lines, with or without their line terminators.
        source: Name of the input, used in error messages.

    Returns:
        List[LogicalLine]: One Directive per comment or blank line and one Entry
        per (possibly continued) code line, in input order.

    Raises:
        UnexpectedEndOfInputError: If the input ends inside a continuation.
    """
    logical_lines: List[LogicalLine] = []
    pending: Optional[List[str]] = None

    for index, line in enumerate(lines):
        line = line.rstrip('\r\n')
        if index == 0 and line.startswith(BOM):
            line = line[len(BOM):]

        if pending is not None:
            pending.append(line)
            if not _has_unescaped_trailing_backslash(_trim(line)):
                logical_lines.append(Entry(tuple(pending)))
                pending = None
            continue

        if is_comment(line) or is_blank(line):
            keep = not _trim(line).startswith(PRIVATE_COMMENT_PREFIX)
            logical_lines.append(Directive(raw=line, keep_on_output=keep))
        elif is_continuation_trigger(line):
            pending = [line]
        else:
            logical_lines.append(Entry((line,)))

    if pending is not None:
        raise UnexpectedEndOfInputError(source)
    return logical_lines


def _physical_lines(entry: Union[Entry, str]) -> Tuple[str, ...]:
    if isinstance(entry, Entry):
        return entry.lines
    text = entry.rstrip('\r\n')
    return tuple(_LINE_BREAK_RE.split(text))


def _join_physical_lines(lines: Tuple[str, ...]) -> Tuple[str, List[Tuple[int, str]]]:
    """
    Join continued physical lines the way the properties grammar does.

    Returns the logical text and, for every continued line, the offset in
    the logical text where it starts plus the leading whitespace it lost.
    """
    parts = []
    joins: List[Tuple[int, str]] = []
    length = 0
    last = len(lines) - 1
    for index, line in enumerate(lines):
        if index < last:
            if not _has_unescaped_trailing_backslash(_trim(line)):
                raise MalformedEntryError('\n'.join(lines))
            line = line.rstrip(_TRIM_CHARS)[:-1]
        body = line.lstrip(_WHITESPACE)
        if index > 0:
            joins.append((length, line[:len(line) - len(body)]))
        parts.append(body)
        length += len(body)
    return ''.join(parts), joins


def _split_key_value(text: str) -> Tuple[str, int]:
    """
    Scan the key of a logical entry.

    Returns the key, escapes kept verbatim, and the index where the value starts.
    """
    state = _KEY
    key_chars = []
    seen_separator = False
    for index, char in enumerate(text):
        if state == _KEY:
            if char == '\\':
                key_chars.append(char)
                state = _KEY_ESCAPE
            elif char in _SEPARATORS or char in _WHITESPACE:
                seen_separator = char in _SEPARATORS
                state = _SEPARATOR
            else:
                key_chars.append(char)
        elif state == _KEY_ESCAPE:
            key_chars.append(char)
            state = _KEY
        else:
            if char in _WHITESPACE:
                continue
            if char in _SEPARATORS and not seen_separator:
                seen_separator = True
                continue
            return ''.join(key_chars), index
    return ''.join(key_chars), len(text)


def parse_entry(entry: Union[Entry, str]) -> ParsedEntry:
    """
    Extract the code and message of a code line.

    The code keeps its escapes verbatim so it can be written back unchanged.
    The message is taken verbatim after the separator; every continuation
    point inside it is recorded so the original line breaks can be restored.

    Args:
        entry: An Entry from join_lines, or the entry text (continued lines
            separated by line breaks).

    Returns:
        ParsedEntry: The code and its message.

    Raises:
        MalformedEntryError: If no key can be extracted.
    """
    lines = _physical_lines(entry)
    if is_comment(lines[0]) or is_blank(lines[0]):
        raise MalformedEntryError('\n'.join(lines))

    text, joins = _join_physical_lines(lines)
    code, value_start = _split_key_value(text)
    if not code:
        raise MalformedEntryError('\n'.join(lines))

    breaks = tuple(
        (offset - value_start, whitespace)
        for offset, whitespace in joins
        if offset >= value_start
    )
    return ParsedEntry(code=code, message=Message(text=text[value_start:], breaks=breaks))
