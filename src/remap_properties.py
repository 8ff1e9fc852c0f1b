import argparse
import os
import sys
import tempfile
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Set, Union

# --- Python Version Check ---
if sys.version_info < (3, 9):
    sys.stderr.write("Error: This script requires Python 3.9 or newer.\n")
    sys.stderr.write(f"You are running Python {sys.version.split()[0]}.\n")
    sys.exit(1)
# --- End Version Check ---

from src.app_config import AppConfig, load_app_config
from src.errors import InvalidArgumentsError, IOFailureError, RemapperError
from src.logging_config import get_logger, setup_logger
from src.properties_parser import LogicalLine, join_lines
from src.remap_table import resolve_remap_argument
from src.remap_validator import (
    check_encoding_and_mojibake,
    check_remap_targets,
    find_unused_edit_codes,
    template_codes
)
from src.resolver import EditMap, assemble, build_edit_map

RemapArgument = Union[None, str, Mapping[str, Union[str, Iterable[str]]]]

logger = get_logger()


@dataclass
class RemapResult:
    """Outcome of a remap run."""
    output_path: str
    lines: List[str]
    missing_codes: List[str] = field(default_factory=list)
    unused_codes: Set[str] = field(default_factory=set)
    written: bool = False


def read_properties_lines(file_path: str, encoding: str = 'utf-8', role: str = 'input') -> List[str]:
    """
    Read the physical lines of a properties file.

    Raises:
        IOFailureError: If the file cannot be opened or decoded.
    """
    try:
        with open(file_path, 'r', encoding=encoding) as file:
            return file.readlines()
    except (OSError, UnicodeDecodeError) as e:
        raise IOFailureError(f"Could not open {role} file '{file_path}' for reading.") from e


def read_template(file_path: str, encoding: str = 'utf-8') -> List[LogicalLine]:
    return join_lines(read_properties_lines(file_path, encoding, 'template'), source=file_path)


def read_edit_map(file_path: str, encoding: str = 'utf-8') -> EditMap:
    return build_edit_map(join_lines(read_properties_lines(file_path, encoding, 'edit'), source=file_path))


def write_output(
        file_path: str,
        lines: Sequence[str],
        line_separator: str = os.linesep,
        encoding: str = 'utf-8'
) -> None:
    """
    Write the output lines, each followed by line_separator.

    The content goes to a temporary file next to the destination which then
    replaces it, so a failed write never leaves a partial output file.

    Raises:
        IOFailureError: If the destination cannot be written.
    """
    directory = os.path.dirname(os.path.abspath(file_path))
    try:
        fd, temp_path = tempfile.mkstemp(prefix='.remap-', suffix='.tmp', dir=directory)
    except OSError as e:
        raise IOFailureError(f"Error writing output file '{file_path}'.") from e

    try:
        # newline= turns every '\n', including those inside continued messages, into the separator
        with os.fdopen(fd, 'w', encoding=encoding, newline=line_separator) as file:
            for line in lines:
                file.write(line)
                file.write('\n')
        os.replace(temp_path, file_path)
    except (OSError, UnicodeEncodeError) as e:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise IOFailureError(f"Error writing output file '{file_path}'.") from e


def remap(
        template_path: str,
        edit_path: str,
        output_path: str,
        remappings: RemapArgument = None,
        config: Optional[AppConfig] = None
) -> RemapResult:
    """
    Rewrite the edit file into the shape of the template file.

    Every code of the template is looked up in the edit file, through the
    remap table when it has an entry for the code, and written under the
    template's code. Template codes without a message are dropped with a
    warning; edit codes the template never asks for are dropped too.
    '#' comments and blank lines of the template are kept, '!' comments are not.

    Args:
        template_path: File giving the order, codes and comments of the output.
        edit_path: File supplying the messages.
        output_path: Destination file.
        remappings: Remap table, literal remap string or remap file path.
            Defaults to the configured remap_file.
        config: Run settings. Defaults to AppConfig().

    Returns:
        RemapResult: The assembled lines and the run's diagnostics.

    Raises:
        InvalidArgumentsError: If any of the three paths is missing.
        RemapperError: On any other fatal problem; no output is written.
    """
    if not template_path or not edit_path or not output_path:
        raise InvalidArgumentsError("Input file paths cannot be empty.")

    config = config or AppConfig()
    if remappings is None:
        remappings = config.remap_file
    remap_table = resolve_remap_argument(remappings, config.encoding)

    # Runs before reading so an undecodable file is reported before it aborts the run.
    if config.check_encoding:
        for path in (template_path, edit_path):
            for error in check_encoding_and_mojibake(path, config.encoding):
                logger.warning(error)

    template_lines = read_template(template_path, config.encoding)
    edit_map = read_edit_map(edit_path, config.encoding)
    logger.info("Read %d template line(s) from '%s' and %d message(s) from '%s'.",
                len(template_lines), template_path, len(edit_map), edit_path)

    codes = template_codes(template_lines)
    for target in sorted(check_remap_targets(codes, remap_table)):
        logger.warning("Remap target '%s' does not occur in the template; its remapping is never used.", target)

    missing_codes: List[str] = []
    output_lines = assemble(
        template_lines,
        edit_map,
        remap_table,
        show_progress=config.show_progress,
        missing_codes=missing_codes
    )

    unused_codes = find_unused_edit_codes(codes, edit_map, remap_table)
    if unused_codes:
        logger.info("%d code(s) of the edit file are not carried into the output: %s",
                    len(unused_codes), ', '.join(sorted(unused_codes)))

    result = RemapResult(
        output_path=output_path,
        lines=output_lines,
        missing_codes=missing_codes,
        unused_codes=unused_codes
    )

    if config.dry_run:
        logger.info("[Dry Run] Would write %d line(s) to '%s'.", len(output_lines), output_path)
        return result

    write_output(output_path, output_lines, config.line_separator, config.encoding)
    result.written = True
    logger.info("Wrote %d line(s) to '%s'.", len(output_lines), output_path)
    return result


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='properties-remapper',
        description="Rewrite a properties file (the edit file) into the key order and comments "
                    "of a template file, renaming keys through an optional remap table."
    )
    parser.add_argument('template', help="Template .properties file.")
    parser.add_argument('edit', help="Edit .properties file supplying the messages.")
    parser.add_argument('output', help="Output file.")
    parser.add_argument(
        'remappings',
        nargs='?',
        default=None,
        help='Remap table such as "{new1:old1, new2:old2}", or a file containing one '
             '(a .yaml/.yml file may hold a target: [candidates] mapping).'
    )
    parser.add_argument('--config', default=None, help="YAML configuration file.")
    parser.add_argument('--log-level', default=None, help="Override the configured log level.")
    parser.add_argument('--dry-run', action='store_true', help="Assemble and report without writing the output.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line entry point."""
    args = _build_arg_parser().parse_args(argv)

    config = load_app_config(args.config, configure_logging=False)
    if args.log_level:
        config.log_level = args.log_level.upper()
    if args.dry_run:
        config.dry_run = True
    setup_logger(config.log_level, config.log_file_path, config.log_to_console)

    try:
        result = remap(args.template, args.edit, args.output, args.remappings, config)
    except RemapperError as e:
        logger.error("%s", e)
        if e.__cause__ is not None:
            logger.error("Caused by: %s", e.__cause__)
        return 1

    if result.missing_codes:
        logger.warning("%d template code(s) had no message and were left out.", len(result.missing_codes))
    return 0


if __name__ == "__main__":
    sys.exit(main())
