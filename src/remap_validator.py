import re
from typing import Iterable, List, Mapping, Sequence, Set, Tuple

from src.properties_parser import Entry, LogicalLine, parse_entry
from src.resolver import resolve_lookup_code


def check_key_coverage(base_keys: Set[str], target_keys: Set[str]) -> Tuple[Set[str], Set[str]]:
    """
    Compares two sets of codes.

    Args:
        base_keys: Codes of the reference file (e.g. the template).
        target_keys: Codes of the file being compared (e.g. the edit file).

    Returns:
        A tuple containing two sets:
        - missing_keys: Keys present in the base set but missing from the target set.
        - extra_keys: Keys present in the target set but absent from the base set.
    """
    missing_keys = base_keys - target_keys
    extra_keys = target_keys - base_keys
    return missing_keys, extra_keys


def template_codes(logical_lines: Iterable[LogicalLine]) -> List[str]:
    """Codes of the template's entries, in order."""
    return [parse_entry(line).code for line in logical_lines if isinstance(line, Entry)]


def find_unused_edit_codes(
        codes: Iterable[str],
        edit_map: Mapping[str, object],
        remap: Mapping[str, Sequence[str]]
) -> Set[str]:
    """
    Edit-file codes that no template code resolves to.

    Their messages are dropped from the output.
    """
    used = {resolve_lookup_code(code, edit_map, remap) for code in codes}
    _, unused = check_key_coverage(used, set(edit_map))
    return unused


def check_remap_targets(codes: Iterable[str], remap: Mapping[str, Sequence[str]]) -> Set[str]:
    """Remap targets that never occur in the template and therefore never apply."""
    _, unknown_targets = check_key_coverage(set(codes), set(remap))
    return unknown_targets


def check_encoding_and_mojibake(file_path: str, encoding: str = 'utf-8') -> List[str]:
    """
    Checks a file for a valid encoding and common mojibake patterns.

    Args:
        file_path: The path to the file to check.
        encoding: The encoding the file is expected to use.

    Returns:
        A list of string error messages. An empty list means the file is valid.
    """
    errors = []

    try:
        with open(file_path, 'r', encoding=encoding) as f:
            content = f.read()
    except UnicodeDecodeError:
        errors.append(f"File '{file_path}' is not a valid {encoding} file.")
        return errors
    except OSError as e:
        errors.append(f"Could not read file '{file_path}'. Reason: {e}")
        return errors

    # 'Ã' followed by a character in 0x80-0xFF is UTF-8 text that was once
    # decoded as latin-1 or cp1252.
    mojibake_pattern = re.compile(r'Ã[\x80-\xff]')
    if mojibake_pattern.search(content):
        errors.append(f"Potential mojibake detected in '{file_path}'. Found patterns like 'Ã¼', 'Ã¤', etc.")

    if '\uFFFD' in content:
        errors.append(f"File '{file_path}' contains the Unicode replacement character (U+FFFD), "
                      f"indicating a previous encoding/decoding error.")

    return errors
