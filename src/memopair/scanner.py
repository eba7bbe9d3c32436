"""
Motif scanning
==============

Locates every occurrence of a motif pair on both strands of a reference and
translates motif offsets into genomic coordinates of the two modification
sites.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from typing import Iterator

from memopair.functions import match_starts
from memopair.iupac import encode, reverse_complement_masks
from memopair.motifs import MotifPairSpec
from memopair.sequences import ReferenceSequence, Strand


@dataclass(frozen=True)
class MotifOccurrence:
    """One motif hit and the genomic positions of its two modification sites.

    ``mod1_position`` always carries ``spec.mod1.mod_type`` and ``mod2_position``
    always carries ``spec.mod2.mod_type``; on the reverse strand both offsets are
    mirrored against the motif length.
    """

    reference: str
    strand: Strand
    start: int
    mod1_position: int
    mod2_position: int
    spec: MotifPairSpec


def site_positions(spec: MotifPairSpec, start: int, strand: Strand) -> tuple[int, int]:
    """Return the genomic (mod1, mod2) positions for a hit at ``start``."""
    if strand is Strand.FORWARD:
        return start + spec.mod1.offset, start + spec.mod2.offset
    last = spec.length - 1
    return start + (last - spec.mod1.offset), start + (last - spec.mod2.offset)


class MotifScanner:
    """Lazy, restartable iterable over the occurrences of one motif pair.

    Each call to ``iter()`` scans the reference again, so the scanner can be
    consumed any number of times.  Occurrences are ordered by start position,
    forward strand first.
    """

    def __init__(self, reference: ReferenceSequence, spec: MotifPairSpec):
        self.reference = reference
        self.spec = spec
        self._forward_masks = encode(spec.motif)
        self._reverse_masks = reverse_complement_masks(self._forward_masks)

    def _hits(self, strand: Strand) -> Iterator[tuple[int, int]]:
        masks = self._forward_masks if strand is Strand.FORWARD else self._reverse_masks
        order = 0 if strand is Strand.FORWARD else 1
        for start in match_starts(self.reference.masks, masks):
            yield int(start), order

    def __iter__(self) -> Iterator[MotifOccurrence]:
        hits = heapq.merge(self._hits(Strand.FORWARD), self._hits(Strand.REVERSE))
        for start, order in hits:
            strand = Strand.FORWARD if order == 0 else Strand.REVERSE
            mod1_position, mod2_position = site_positions(self.spec, start, strand)
            yield MotifOccurrence(
                reference=self.reference.id,
                strand=strand,
                start=start,
                mod1_position=mod1_position,
                mod2_position=mod2_position,
                spec=self.spec,
            )


def scan_motif_pair(reference: ReferenceSequence, spec: MotifPairSpec) -> MotifScanner:
    """Scan ``reference`` for ``spec`` on both strands."""
    logger = logging.getLogger(__name__)
    logger.debug(
        f"Scanning {reference.id} ({len(reference)} bp) for {spec.render()}"
        f"{' (palindromic)' if spec.is_palindromic else ''}"
    )
    return MotifScanner(reference, spec)
