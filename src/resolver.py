"""Projecting the edit file's messages onto the template's shape."""
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from tqdm import tqdm

from src.logging_config import get_logger
from src.properties_parser import Directive, Entry, LogicalLine, Message, ParsedEntry, parse_entry

EditMap = Dict[str, Message]
MessageLike = Union[Message, str]

# Output lines use '\n'; the writer converts it to the configured separator.
NEWLINE = '\n'

logger = get_logger()


def build_edit_map(logical_lines: Iterable[LogicalLine]) -> EditMap:
    """
    Build the code -> message map of an edit file.

    Comments and blank lines are ignored. A code that appears more than once
    keeps its last message.
    """
    edit_map: EditMap = {}
    for line in logical_lines:
        if not isinstance(line, Entry):
            continue
        parsed = parse_entry(line)
        if parsed.code in edit_map:
            logger.debug("Code '%s' appears more than once in the edit file; keeping the last message.", parsed.code)
        edit_map[parsed.code] = parsed.message
    return edit_map


def resolve_lookup_code(
        code: str,
        edit_map: Mapping[str, MessageLike],
        remap: Mapping[str, Sequence[str]]
) -> str:
    """
    Pick the edit-file code that supplies the message for a template code.

    The first remap candidate present in the edit map wins. Without a remap
    entry, or when none of its candidates exist, the code itself is used.
    """
    for candidate in remap.get(code, ()):
        if candidate in edit_map:
            return candidate
    return code


def assemble(
        template_lines: Iterable[LogicalLine],
        edit_map: Mapping[str, MessageLike],
        remap: Mapping[str, Sequence[str]],
        show_progress: bool = False,
        missing_codes: Optional[List[str]] = None
) -> List[str]:
    """
    Build the output lines in template order.

    Args:
        template_lines: Logical lines of the template file.
        edit_map: Messages of the edit file by code.
        remap: Target code -> candidate source codes.
        show_progress: Show a tqdm progress bar while assembling.
        missing_codes: If given, every lookup code without a message is appended to it.

    Returns:
        List[str]: The output lines. Continued messages contain ``\\n`` line breaks.
    """
    output_lines: List[str] = []
    for line in tqdm(template_lines, desc="Assembling", unit="line", disable=not show_progress):
        if isinstance(line, Directive):
            if line.keep_on_output:
                output_lines.append(line.raw)
            continue

        # The template's own message is discarded; only its code and position count.
        code = parse_entry(line).code
        lookup_code = resolve_lookup_code(code, edit_map, remap)

        message = edit_map.get(lookup_code)
        if message is None:
            logger.warning("No message found for code '%s'", lookup_code)
            if missing_codes is not None:
                missing_codes.append(lookup_code)
            continue

        if lookup_code != code:
            logger.debug("Code '%s' takes its message from '%s'.", code, lookup_code)
        if isinstance(message, str):
            message = Message(message)
        output_lines.append(ParsedEntry(lookup_code, message).to_line(code, NEWLINE))

    return output_lines
