"""Paired methylation state of a single motif occurrence."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional

from memopair.motifs import MotifPairSpec
from memopair.pileup import PileupIndex, PileupRecord
from memopair.scanner import MotifOccurrence


class PairState(str, Enum):
    BOTH_MODIFIED = "both_modified"
    MOD1_ONLY = "mod1_only"
    MOD2_ONLY = "mod2_only"
    NEITHER_MODIFIED = "neither_modified"
    LOW_COVERAGE = "low_coverage"
    NO_CALL = "no_call"


PAIR_STATES: List[PairState] = list(PairState)
POSITIVE_STATES = frozenset(
    {PairState.BOTH_MODIFIED, PairState.MOD1_ONLY, PairState.MOD2_ONLY, PairState.NEITHER_MODIFIED}
)


@dataclass(frozen=True)
class ClassifiedOccurrence:
    """Classifier output for one occurrence.

    ``coverage`` holds the (mod1, mod2) coverages; a site missing from the
    pileup has coverage ``None``.
    """

    occurrence: MotifOccurrence
    state: PairState
    mod1_record: Optional[PileupRecord] = None
    mod2_record: Optional[PileupRecord] = None

    @property
    def spec(self) -> MotifPairSpec:
        return self.occurrence.spec

    @property
    def reference(self) -> str:
        return self.occurrence.reference

    @property
    def coverage(self) -> tuple:
        return (
            self.mod1_record.coverage if self.mod1_record is not None else None,
            self.mod2_record.coverage if self.mod2_record is not None else None,
        )


def pair_state(
    mod1_record: Optional[PileupRecord], mod2_record: Optional[PileupRecord], spec: MotifPairSpec, min_cov: int
) -> PairState:
    """Classify a pair of site records; total over every input."""
    if mod1_record is None or mod2_record is None:
        return PairState.NO_CALL
    if mod1_record.coverage < min_cov or mod2_record.coverage < min_cov:
        return PairState.LOW_COVERAGE

    mod1 = mod1_record.reports(spec.mod1.mod_type)
    mod2 = mod2_record.reports(spec.mod2.mod_type)
    if mod1 and mod2:
        return PairState.BOTH_MODIFIED
    if mod1:
        return PairState.MOD1_ONLY
    if mod2:
        return PairState.MOD2_ONLY
    return PairState.NEITHER_MODIFIED


def classify_occurrence(occurrence: MotifOccurrence, index: PileupIndex, min_cov: int = 5) -> ClassifiedOccurrence:
    """Join an occurrence with the pileup at both sites and classify it."""
    spec = occurrence.spec
    mod1_record = index.get(occurrence.reference, occurrence.mod1_position, occurrence.strand, spec.mod1.mod_type)
    mod2_record = index.get(occurrence.reference, occurrence.mod2_position, occurrence.strand, spec.mod2.mod_type)
    state = pair_state(mod1_record, mod2_record, spec, min_cov)
    return ClassifiedOccurrence(occurrence=occurrence, state=state, mod1_record=mod1_record, mod2_record=mod2_record)


def classify_occurrences(
    occurrences: Iterable[MotifOccurrence], index: PileupIndex, min_cov: int = 5
) -> Iterator[ClassifiedOccurrence]:
    for occurrence in occurrences:
        yield classify_occurrence(occurrence, index, min_cov)
