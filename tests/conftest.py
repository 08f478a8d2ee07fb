import sys
from pathlib import Path
import importlib
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture()
def m():
    """Lazily import the main module for tests to avoid module-level import."""
    return importlib.import_module("main")


@pytest.fixture()
def sample_text():
    """A few kilobytes of text with a skewed byte distribution."""
    return (b"The quick brown fox jumps over the lazy dog. " * 50
            + b"abracadabra\n" * 20)


@pytest.fixture()
def sample_file(tmp_path: Path, sample_text):
    """Write ``sample_text`` to a temporary file and return its path."""
    path = tmp_path / "sample.txt"
    path.write_bytes(sample_text)
    return path
