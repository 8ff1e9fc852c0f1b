"""Application configuration module for the properties remapper."""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from src.logging_config import setup_logger

CONFIG_ENV_VAR = 'REMAPPER_CONFIG_FILE'
LOG_LEVEL_ENV_VAR = 'REMAPPER_LOG_LEVEL'
DRY_RUN_ENV_VAR = 'REMAPPER_DRY_RUN'

DEFAULT_LOG_FILE_PATH = 'logs/remap_log.log'

LINE_SEPARATORS = {
    'native': os.linesep,
    'lf': '\n',
    'crlf': '\r\n',
}


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    project_root: str = ''

    # Input/output
    encoding: str = 'utf-8'
    line_separator: str = os.linesep
    remap_file: Optional[str] = None

    # Processing settings
    check_encoding: bool = True
    show_progress: bool = False
    dry_run: bool = False

    # Logging
    log_level: str = 'INFO'
    log_file_path: str = DEFAULT_LOG_FILE_PATH
    log_to_console: bool = True


def _compute_project_root() -> str:
    """Compute the project root directory."""
    script_real_path = os.path.realpath(__file__)
    script_dir = os.path.dirname(script_real_path)
    return os.path.abspath(os.path.join(script_dir, os.pardir))


def _load_dotenv_files(project_root: str) -> Optional[str]:
    """Load the .env file from the project root, if there is one."""
    dotenv_path = os.path.join(project_root, '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path)
        return dotenv_path
    return None


def _load_yaml_config(project_root: str, config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML configuration file, falling back to defaults on any problem."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = config_path or os.environ.get(CONFIG_ENV_VAR, default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        if not os.path.exists(config_file):
            # Only an explicitly requested file is worth a warning.
            if config_path or os.environ.get(CONFIG_ENV_VAR):
                print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                      file=sys.stderr)
            return config

        if not os.access(config_file, os.R_OK):
            print(f"Error: Configuration file '{config_file}' exists but is not readable. Check file permissions.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _resolve_line_separator(name: Any) -> str:
    key = str(name or 'native').lower()
    if key not in LINE_SEPARATORS:
        print(f"Warning: Unknown line_separator '{name}'. Using the platform separator.", file=sys.stderr)
        key = 'native'
    return LINE_SEPARATORS[key]


def _setup_logger_from_config(app_config: AppConfig) -> logging.Logger:
    """Set up logger based on configuration."""
    return setup_logger(app_config.log_level, app_config.log_file_path, app_config.log_to_console)


def load_app_config(config_path: Optional[str] = None, configure_logging: bool = True) -> AppConfig:
    """
    Load application configuration from a YAML file and environment variables.

    Args:
        config_path: Explicit config file. Defaults to $REMAPPER_CONFIG_FILE,
            then config.yaml in the project root.
        configure_logging: Whether to set up the remapper logger from the result.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _compute_project_root()
    dotenv_path = _load_dotenv_files(project_root)
    config = _load_yaml_config(project_root, config_path)

    log_config = config.get('logging') or {}
    if not isinstance(log_config, dict):
        print(f"Warning: 'logging' in the config file must be a mapping; ignoring {log_config!r}.",
              file=sys.stderr)
        log_config = {}
    log_level = os.environ.get(LOG_LEVEL_ENV_VAR, log_config.get('log_level', 'INFO')).upper()

    app_config = AppConfig(
        project_root=project_root,
        encoding=config.get('encoding', 'utf-8'),
        line_separator=_resolve_line_separator(config.get('line_separator')),
        remap_file=config.get('remap_file'),
        check_encoding=_parse_bool(config.get('check_encoding'), True),
        show_progress=_parse_bool(config.get('show_progress'), False),
        dry_run=_parse_bool(os.environ.get(DRY_RUN_ENV_VAR, config.get('dry_run')), False),
        log_level=log_level,
        log_file_path=log_config.get('log_file_path', DEFAULT_LOG_FILE_PATH),
        log_to_console=_parse_bool(log_config.get('log_to_console'), True),
    )

    if configure_logging:
        logger = _setup_logger_from_config(app_config)
        if dotenv_path:
            logger.info("Loaded environment variables from: %s", dotenv_path)

    return app_config
