from __future__ import annotations

import bz2
import gzip
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator, List, Sequence, TextIO, Tuple, Union

import pandas as pd

from memopair.sequences import ReferenceSequence

PathLike = Union[str, Path]


def openfile(path: PathLike) -> TextIO:
    """Open a file for text reading, handling ``.gz`` and ``.bz2``/``.bz`` by extension."""
    name = str(path)
    if name.endswith(".gz"):
        return gzip.open(name, "rt")
    if name.endswith(".bz2") or name.endswith(".bz"):
        return bz2.open(name, "rt")
    return open(name, "rt")


def _header_id(line: str, path: PathLike) -> str:
    parts = line[1:].split()
    if not parts:
        raise ValueError(f"FASTA record without an identifier in {path}")
    return parts[0]


def iter_fasta(path: PathLike) -> Iterator[ReferenceSequence]:
    """Lazily yield the records of a FASTA file, one :class:`ReferenceSequence` at a time."""
    with openfile(path) as handle:
        current_id = None
        chunks: List[str] = []
        for line in handle:
            line = line.strip()
            if not line:
                continue
            if line.startswith(">"):
                if current_id is not None:
                    yield ReferenceSequence(current_id, "".join(chunks))
                current_id = _header_id(line, path)
                chunks = []
            elif current_id is None:
                raise ValueError(f"Sequence data before the first FASTA header in {path}")
            else:
                chunks.append(line)

        if current_id is not None:
            yield ReferenceSequence(current_id, "".join(chunks))


def read_fasta_ids(path: PathLike) -> List[str]:
    """Return record identifiers in file order without keeping sequences in memory."""
    ids: List[str] = []
    seen = set()
    with openfile(path) as handle:
        for line in handle:
            if not line.startswith(">"):
                continue
            record_id = _header_id(line.strip(), path)
            if record_id in seen:
                raise ValueError(f"Duplicate FASTA record id {record_id!r} in {path}")
            seen.add(record_id)
            ids.append(record_id)

    if not ids:
        raise ValueError(f"No sequences found in {path}")
    return ids


def iter_pileup_lines(path: PathLike) -> Iterator[Tuple[int, str]]:
    """Yield ``(line_number, line)`` for data lines; blanks, ``#`` comments and ``track`` headers are skipped."""
    with openfile(path) as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.rstrip("\r\n")
            if not line.strip() or line.startswith("#") or line.startswith("track"):
                continue
            yield line_number, line


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def stage_table(frame: pd.DataFrame, path: PathLike) -> str:
    """
    Write ``frame`` as TSV into a temporary file next to ``path``.

    The staged file gets the permissions a plainly created file would get.
    Returns the temporary path, to be handed to :func:`commit_tables`.
    """
    destination = Path(path)
    if destination.is_dir():
        raise IsADirectoryError(f"Output path is a directory: {destination}")

    fd, tmp_path = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
    try:
        with os.fdopen(fd, "w", newline="") as handle:
            os.fchmod(handle.fileno(), 0o666 & ~_current_umask())
            frame.to_csv(handle, sep="\t", index=False)
    except BaseException:
        os.remove(tmp_path)
        raise
    return tmp_path


def commit_tables(staged: Sequence[Tuple[str, PathLike]]) -> None:
    """Move staged ``(tmp_path, destination)`` files into place."""
    for tmp_path, destination in staged:
        os.replace(tmp_path, destination)


def write_tables(tables: Sequence[Tuple[pd.DataFrame, PathLike]]) -> None:
    """
    Write several ``(frame, path)`` tables so that none appears unless all were written.

    Every table is staged first; destinations are only replaced once staging
    succeeded for all of them.  Staged files are removed on failure.
    """
    logger = logging.getLogger(__name__)
    staged: List[Tuple[str, PathLike]] = []
    try:
        for frame, path in tables:
            staged.append((stage_table(frame, path), path))
        commit_tables(staged)
    except BaseException:
        for tmp_path, _ in staged:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        raise

    for frame, path in tables:
        logger.info(f"Wrote {len(frame)} row(s) to {path}")


def write_table(frame: pd.DataFrame, path: PathLike) -> None:
    """Write ``frame`` as TSV; the destination only appears once fully written."""
    write_tables([(frame, path)])
