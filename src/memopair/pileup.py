"""
Pileup index
============

Streams a per-position methylation pileup into an in-memory index keyed by
``(reference, position, strand)``.  Two layouts are understood:

``bedmethyl``
    modkit bedMethyl.  The call at a site is derived from the modified and
    canonical read counts against ``min_mod_fraction``.  modkit writes one
    line per modification code and site, so each site keeps one record per
    code.

``calls``
    A plain table ``reference  position  strand  call  coverage``.

Parsing is fail-fast: a single malformed line aborts index construction.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Collection, Dict, Iterable, Optional, Tuple, Union

from memopair.io import iter_pileup_lines
from memopair.sequences import Strand

PILEUP_FORMATS = ("bedmethyl", "calls")

UNMODIFIED_TOKENS = frozenset({"-", "unmodified", "canonical"})
NO_CALL_TOKENS = frozenset({".", "nocall", "no-call"})


class MalformedPileupLine(ValueError):
    """Raised when a pileup line cannot be turned into a :class:`PileupRecord`."""

    def __init__(self, line_number: int, content: str, reason: str):
        self.line_number = line_number
        self.content = content
        self.reason = reason
        super().__init__(f"Malformed pileup line {line_number} ({reason}): {content!r}")


class UnknownReferenceInPileup(ValueError):
    """Raised when a pileup record names a reference absent from the FASTA."""

    def __init__(self, reference: str, line_number: int):
        self.reference = reference
        self.line_number = line_number
        super().__init__(f"Pileup line {line_number} refers to unknown reference {reference!r}")


class CallKind(str, Enum):
    NO_CALL = "nocall"
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"


@dataclass(frozen=True)
class PileupRecord:
    """Methylation call and coverage at one stranded position.

    ``code`` is the modification code a bedMethyl line counts reads for; it is
    ``None`` for call tables, which hold a single call per site.  The read
    counts are only known for bedMethyl input.
    """

    reference: str
    position: int
    strand: Strand
    call: CallKind
    coverage: int
    mod_type: Optional[str] = None
    code: Optional[str] = None
    n_mod: Optional[int] = None
    n_canonical: Optional[int] = None
    n_diff: Optional[int] = None

    def reports(self, mod_type: str) -> bool:
        """True when this site is called modified with exactly ``mod_type``."""
        return self.call is CallKind.MODIFIED and self.mod_type == mod_type

    @property
    def label(self) -> str:
        """Call rendered for reports: the modification label, ``unmodified`` or ``nocall``."""
        if self.call is CallKind.MODIFIED:
            return self.mod_type
        return self.call.value


def _to_count(value: str, name: str, line_number: int, line: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise MalformedPileupLine(line_number, line, f"{name} must be a non-negative integer, got {value!r}")
    return int(value)


def _to_strand(value: str, line_number: int, line: str) -> Strand:
    try:
        return Strand.parse(value)
    except ValueError as e:
        raise MalformedPileupLine(line_number, line, str(e)) from None


def parse_bedmethyl_line(line: str, line_number: int, min_mod_fraction: float = 0.5) -> PileupRecord:
    """Parse one modkit bedMethyl line (tab or space separated)."""
    fields = line.split()
    if len(fields) < 18:
        raise MalformedPileupLine(line_number, line, f"expected at least 18 columns, got {len(fields)}")

    reference = fields[0]
    position = _to_count(fields[1], "start", line_number, line)
    mod_code = fields[3]
    strand = _to_strand(fields[5], line_number, line)
    n_valid_cov = _to_count(fields[9], "n_valid_cov", line_number, line)
    n_mod = _to_count(fields[11], "n_mod", line_number, line)
    n_canonical = _to_count(fields[12], "n_canonical", line_number, line)
    n_diff = _to_count(fields[17], "n_diff", line_number, line)

    if n_mod + n_canonical > n_valid_cov:
        raise MalformedPileupLine(line_number, line, "n_mod + n_canonical exceeds n_valid_cov")

    if n_valid_cov > 0 and n_mod / n_valid_cov >= min_mod_fraction:
        call, mod_type = CallKind.MODIFIED, mod_code
    elif n_valid_cov > 0 and n_canonical / n_valid_cov >= min_mod_fraction:
        call, mod_type = CallKind.UNMODIFIED, None
    else:
        call, mod_type = CallKind.NO_CALL, None

    return PileupRecord(
        reference=reference,
        position=position,
        strand=strand,
        call=call,
        coverage=n_valid_cov,
        mod_type=mod_type,
        code=mod_code,
        n_mod=n_mod,
        n_canonical=n_canonical,
        n_diff=n_diff,
    )


def parse_calls_line(line: str, line_number: int) -> PileupRecord:
    """Parse one ``reference position strand call coverage`` line."""
    fields = line.split()
    if len(fields) < 5:
        raise MalformedPileupLine(line_number, line, f"expected at least 5 columns, got {len(fields)}")

    reference, position, strand, token, coverage = fields[:5]
    if token.lower() in UNMODIFIED_TOKENS:
        call, mod_type = CallKind.UNMODIFIED, None
    elif token.lower() in NO_CALL_TOKENS:
        call, mod_type = CallKind.NO_CALL, None
    else:
        call, mod_type = CallKind.MODIFIED, token

    return PileupRecord(
        reference=reference,
        position=_to_count(position, "position", line_number, line),
        strand=_to_strand(strand, line_number, line),
        call=call,
        coverage=_to_count(coverage, "coverage", line_number, line),
        mod_type=mod_type,
    )


class PileupIndex:
    """Read-only lookup of pileup records by ``(reference, position, strand)``.

    Each site holds one record per modification code.  Built once per run and
    shared by every worker without locking.
    """

    def __init__(self) -> None:
        self._records: Dict[str, Dict[Tuple[int, Strand], Dict[Optional[str], PileupRecord]]] = defaultdict(dict)
        self.n_records = 0
        self.n_duplicates = 0

    def add(self, record: PileupRecord) -> None:
        """Insert a record; an existing entry for the same site and code is replaced."""
        site = self._records[record.reference].setdefault((record.position, record.strand), {})
        if record.code in site:
            self.n_duplicates += 1
        else:
            self.n_records += 1
        site[record.code] = record

    def get(
        self, reference: str, position: int, strand: Strand, mod_type: Optional[str] = None
    ) -> Optional[PileupRecord]:
        """
        Look up the record at a stranded position.

        With ``mod_type`` the record for that modification code is returned;
        call-table records carry no code and answer for every ``mod_type``.
        Without ``mod_type`` a site is only resolved when it holds a single
        record.
        """
        sites = self._records.get(reference)
        if sites is None:
            return None
        site = sites.get((position, strand))
        if not site:
            return None
        if mod_type is not None and mod_type in site:
            return site[mod_type]
        if None in site:
            return site[None]
        if mod_type is None and len(site) == 1:
            return next(iter(site.values()))
        return None

    def __len__(self) -> int:
        return self.n_records

    @property
    def references(self) -> list:
        return list(self._records)

    @classmethod
    def from_records(cls, records: Iterable[PileupRecord]) -> "PileupIndex":
        index = cls()
        for record in records:
            index.add(record)
        return index

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        known_references: Collection[str],
        pileup_format: str = "bedmethyl",
        min_mod_fraction: float = 0.5,
        mod_types: Optional[Collection[str]] = None,
        strict_references: bool = False,
    ) -> "PileupIndex":
        """
        Stream a pileup file into an index.

        Parameters
        ----------
        path : str or Path
            Pileup file, optionally gzip/bzip2 compressed.
        known_references : Collection[str]
            Reference ids loaded from the FASTA.  Records for other references
            are skipped with a warning, or raise when ``strict_references``.
        pileup_format : str
            ``bedmethyl`` or ``calls``.
        min_mod_fraction : float
            Read fraction needed to call a bedMethyl site modified/unmodified.
        mod_types : Collection[str], optional
            Declared modification labels; bedMethyl lines for other
            modification codes are skipped.
        strict_references : bool
            Make unknown references fatal.

        Returns
        -------
        PileupIndex
            The populated index.

        Raises
        ------
        MalformedPileupLine
            On the first line that cannot be parsed.
        UnknownReferenceInPileup
            With ``strict_references`` when a record names an unknown reference.
        """
        if pileup_format not in PILEUP_FORMATS:
            raise ValueError(f"Unknown pileup format: {pileup_format!r}. Available: {', '.join(PILEUP_FORMATS)}")

        logger = logging.getLogger(__name__)
        known = set(known_references)
        unknown: Dict[str, int] = {}
        n_filtered = 0
        index = cls()

        for line_number, line in iter_pileup_lines(path):
            if pileup_format == "bedmethyl":
                record = parse_bedmethyl_line(line, line_number, min_mod_fraction)
                if mod_types is not None and record.code not in mod_types:
                    n_filtered += 1
                    continue
            else:
                record = parse_calls_line(line, line_number)

            if record.reference not in known:
                if strict_references:
                    raise UnknownReferenceInPileup(record.reference, line_number)
                if record.reference not in unknown:
                    logger.warning(str(UnknownReferenceInPileup(record.reference, line_number)) + "; ignoring it")
                unknown[record.reference] = unknown.get(record.reference, 0) + 1
                continue

            index.add(record)

        if unknown:
            skipped = sum(unknown.values())
            logger.warning(f"Skipped {skipped} pileup record(s) on {len(unknown)} unknown reference(s)")
        if n_filtered:
            logger.debug(f"Skipped {n_filtered} bedMethyl line(s) with undeclared modification codes")
        if index.n_duplicates:
            logger.warning(f"{index.n_duplicates} duplicate pileup entr(ies) overwritten, last one wins")
        logger.info(f"Indexed {len(index)} pileup record(s) on {len(index.references)} reference(s)")

        return index
