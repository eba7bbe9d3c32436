"""
Aggregation of classified occurrences into per-reference, per-motif-pair rows.
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from memopair.classify import PAIR_STATES, ClassifiedOccurrence, PairState
from memopair.motifs import MotifPairSpec
from memopair.pileup import PileupRecord
from memopair.sequences import Strand

REPORT_COLUMNS = [
    "reference",
    "motif_pair",
    "both_modified",
    "mod1_only",
    "mod2_only",
    "neither_modified",
    "low_coverage",
    "no_call",
    "n_considered",
    "n_scanned",
]

DETAIL_COLUMNS = [
    "reference",
    "motif_pair",
    "strand",
    "start",
    "mod1_type",
    "mod1_position",
    "mod1_call",
    "mod1_coverage",
    "mod1_n_mod",
    "mod1_n_nomod",
    "mod1_n_diff",
    "mod2_type",
    "mod2_position",
    "mod2_call",
    "mod2_coverage",
    "mod2_n_mod",
    "mod2_n_nomod",
    "mod2_n_diff",
    "state",
]


def _site_fields(record: Optional[PileupRecord]) -> tuple:
    """Call, coverage and read counts of one site; blanks where unknown."""
    if record is None:
        return "", 0, "", "", ""
    counts = tuple("" if count is None else count for count in (record.n_mod, record.n_canonical, record.n_diff))
    return (record.label, record.coverage) + counts


@dataclass(frozen=True)
class ReportRow:
    """Finalized counts for one (reference, motif pair)."""

    reference: str
    motif_pair: str
    both_modified: int
    mod1_only: int
    mod2_only: int
    neither_modified: int
    low_coverage: int
    no_call: int
    n_considered: int
    n_scanned: int

    def as_tuple(self) -> tuple:
        return tuple(getattr(self, column) for column in REPORT_COLUMNS)


class AggregateReport:
    """
    Thread-safe accumulator keyed by (reference, motif pair).

    Rows are pre-created for every reference/spec combination so the final
    table is complete even where a motif never occurs.  Workers hand in whole
    batches through :meth:`add_batch`, which holds the lock once per batch.
    """

    def __init__(self, references: Sequence[str], specs: Sequence[MotifPairSpec], keep_details: bool = False):
        self.references = list(references)
        self.specs = list(specs)
        self.keep_details = keep_details
        self._counts: Dict[Tuple[str, MotifPairSpec], Counter] = {
            (reference, spec): Counter() for reference in self.references for spec in self.specs
        }
        self._details: List[ClassifiedOccurrence] = []
        self._lock = threading.Lock()

    def _fold(self, classified: ClassifiedOccurrence) -> None:
        key = (classified.reference, classified.spec)
        counts = self._counts.get(key)
        if counts is None:
            raise KeyError(f"No report row for reference {key[0]!r} and motif pair {key[1].render()}")
        counts[classified.state] += 1
        counts["n_scanned"] += 1
        if classified.state is not PairState.NO_CALL:
            counts["n_considered"] += 1
        if self.keep_details:
            self._details.append(classified)

    def add(self, classified: ClassifiedOccurrence) -> None:
        with self._lock:
            self._fold(classified)

    def add_batch(self, batch: Iterable[ClassifiedOccurrence]) -> int:
        """Fold a batch atomically and return its size."""
        batch = list(batch)
        with self._lock:
            for classified in batch:
                self._fold(classified)
        return len(batch)

    def counts(self, reference: str, spec: MotifPairSpec) -> Dict[str, int]:
        counts = self._counts[(reference, spec)]
        result = {state.value: counts[state] for state in PAIR_STATES}
        result["n_considered"] = counts["n_considered"]
        result["n_scanned"] = counts["n_scanned"]
        return result

    def rows(self) -> List[ReportRow]:
        """Rows ordered by reference input order, then motif-pair input order."""
        with self._lock:
            return [
                ReportRow(reference=reference, motif_pair=spec.render(), **self.counts(reference, spec))
                for reference in self.references
                for spec in self.specs
            ]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([row.as_tuple() for row in self.rows()], columns=REPORT_COLUMNS)

    def details(self) -> List[ClassifiedOccurrence]:
        """Kept occurrences in a deterministic order independent of worker scheduling."""
        reference_order = {reference: i for i, reference in enumerate(self.references)}
        spec_order = {spec: i for i, spec in enumerate(self.specs)}
        with self._lock:
            return sorted(
                self._details,
                key=lambda c: (
                    reference_order[c.reference],
                    spec_order[c.spec],
                    c.occurrence.start,
                    c.occurrence.strand is Strand.REVERSE,
                ),
            )

    def details_dataframe(self) -> pd.DataFrame:
        if not self.keep_details:
            raise ValueError("Report was built without keep_details=True")

        records = []
        for classified in self.details():
            occurrence = classified.occurrence
            spec = occurrence.spec
            records.append(
                (occurrence.reference, spec.render(), occurrence.strand.value, occurrence.start)
                + (spec.mod1.mod_type, occurrence.mod1_position)
                + _site_fields(classified.mod1_record)
                + (spec.mod2.mod_type, occurrence.mod2_position)
                + _site_fields(classified.mod2_record)
                + (classified.state.value,)
            )
        return pd.DataFrame(records, columns=DETAIL_COLUMNS)
