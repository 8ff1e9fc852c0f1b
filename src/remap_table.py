"""Building the remap table: target code -> ordered candidate source codes."""
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import jsonschema
import yaml

from src.errors import IOFailureError, RemapParseError
from src.logging_config import get_logger

RemapTable = Dict[str, List[str]]

YAML_EXTENSIONS = ('.yaml', '.yml')

# A YAML remap file maps each target code to one candidate or a list of them.
REMAP_FILE_SCHEMA = {
    "type": "object",
    "patternProperties": {
        "^.+$": {
            "oneOf": [
                {"type": "string", "minLength": 1},
                {
                    "type": "array",
                    "items": {"type": "string", "minLength": 1},
                    "minItems": 1
                }
            ]
        }
    },
    "additionalProperties": False
}

_PARSE_ERROR_MESSAGE = "Parse error. Check your remap string for consistency: {detail}"

logger = get_logger()


def add_to_set(key: str, value: str, table: RemapTable) -> None:
    """
    Add a candidate to the entry for key, creating it on first use.

    Candidates keep their insertion order and are not duplicated.
    """
    candidates = table.setdefault(key, [])
    if value not in candidates:
        candidates.append(value)


def create_map(spec: Optional[str]) -> RemapTable:
    """
    Parse a remap string of the form ``{target:candidate, target:candidate}``.

    Repeated targets accumulate their candidates. ``None`` and ``{}`` give an
    empty table.

    Raises:
        RemapParseError: If the braces are missing or a pair is not exactly
            one ``target:candidate``.
    """
    table: RemapTable = {}
    if spec is None:
        return table

    spec = spec.strip()
    if not spec.startswith('{') or not spec.endswith('}'):
        raise RemapParseError(_PARSE_ERROR_MESSAGE.format(detail="expected the form {target:candidate, ...}"))

    body = spec[1:-1]
    if not body.strip():
        return table

    for pair in body.split(','):
        parts = pair.split(':')
        if len(parts) != 2:
            raise RemapParseError(_PARSE_ERROR_MESSAGE.format(detail=f"bad pair '{pair.strip()}'"))
        target, candidate = parts[0].strip(), parts[1].strip()
        if not target or not candidate:
            raise RemapParseError(_PARSE_ERROR_MESSAGE.format(detail=f"empty code in pair '{pair.strip()}'"))
        add_to_set(target, candidate, table)

    return table


def _table_from_mapping(mapping: Mapping[Any, Any]) -> RemapTable:
    table: RemapTable = {}
    for target, candidates in mapping.items():
        if isinstance(candidates, str):
            candidates = [candidates]
        for candidate in candidates:
            add_to_set(str(target), str(candidate), table)
    return table


def _parse_yaml_remap(content: str, path: str) -> RemapTable:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise RemapParseError(f"Invalid YAML in remap file '{path}': {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RemapParseError(f"Remap file '{path}' must contain a YAML mapping of target codes.")

    data = {str(key): value for key, value in data.items()}
    try:
        jsonschema.validate(instance=data, schema=REMAP_FILE_SCHEMA)
    except jsonschema.ValidationError as e:
        raise RemapParseError(f"Invalid remap file '{path}': {e.message}") from e

    return _table_from_mapping(data)


def load_remap_file(path: str, encoding: str = 'utf-8') -> RemapTable:
    """
    Load a remap table from a file.

    YAML files (.yaml/.yml) hold a mapping of target code to candidate(s);
    any other file holds the literal ``{target:candidate, ...}`` form.

    Raises:
        IOFailureError: If the file cannot be read.
        RemapParseError: If its content is not a valid remap table.
    """
    try:
        with open(path, 'r', encoding=encoding) as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise IOFailureError(f"Error opening remappings file '{path}'.") from e

    if os.path.splitext(path)[1].lower() in YAML_EXTENSIONS:
        table = _parse_yaml_remap(content, path)
    else:
        table = create_map(content)

    logger.info("Loaded %d remap target(s) from '%s'.", len(table), path)
    return table


def resolve_remap_argument(
        value: Union[None, str, Mapping[str, Union[str, Iterable[str]]]],
        encoding: str = 'utf-8'
) -> RemapTable:
    """
    Turn whatever the caller passed as remappings into a remap table.

    Args:
        value: None, a ready mapping, the path of a remap file, or a literal
            remap string.
        encoding: Encoding used when value names a file.

    Returns:
        RemapTable: A fresh table; the caller's mapping is never modified.
    """
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return _table_from_mapping(value)
    if os.path.isfile(value):
        return load_remap_file(value, encoding)
    return create_map(value)
