import logging
import os

import pytest

from src.logging_config import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_remapper_logger():
    """Undo any logger setup a test performed (e.g. through main())."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def write_file(tmp_path):
    """Factory writing a UTF-8 file under tmp_path and returning its path as a string."""
    def _write(name, content, encoding='utf-8'):
        path = tmp_path / name
        os.makedirs(path.parent, exist_ok=True)
        with open(path, 'w', encoding=encoding, newline='') as f:
            f.write(content)
        return str(path)
    return _write


@pytest.fixture
def read_file():
    """Read a file back without newline translation."""
    def _read(path, encoding='utf-8'):
        with open(path, 'r', encoding=encoding, newline='') as f:
            return f.read()
    return _read
