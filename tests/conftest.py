"""
Pytest configuration and common fixtures for memopair tests.
"""
import sys
import tempfile
from pathlib import Path

import pytest

# Force testing the installed package, not the local source
project_root = str(Path(__file__).parent.parent.absolute())
if project_root in sys.path:
    sys.path.remove(project_root)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def examples_dir():
    """Return path to examples directory."""
    return Path(__file__).parent.parent / "examples"


@pytest.fixture
def write_fasta(temp_dir):
    """Write ``{id: sequence}`` to a FASTA file and return its path."""

    def _write(records, name="reference.fa"):
        path = temp_dir / name
        with open(path, "w") as handle:
            for record_id, sequence in records.items():
                handle.write(f">{record_id}\n{sequence}\n")
        return path

    return _write


@pytest.fixture
def write_calls(temp_dir):
    """Write ``(reference, position, strand, call, coverage)`` rows as a calls table."""

    def _write(rows, name="calls.tsv"):
        path = temp_dir / name
        with open(path, "w") as handle:
            for row in rows:
                handle.write("\t".join(str(value) for value in row) + "\n")
        return path

    return _write
