"""
Motif-pair definitions
======================

A motif pair is written as ``MOTIF_TYPE1_POS1_TYPE2_POS2``, e.g.
``CCWGG_4mC_0_5mC_3`` or ``ACGT_a_0_m_3``.  ``MOTIF`` is an IUPAC pattern,
``TYPE1``/``TYPE2`` are opaque modification labels and ``POS1``/``POS2`` are
0-based offsets into the motif.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List

from memopair.iupac import is_iupac, reverse_complement

_OFFSET_PATTERN = re.compile(r"[0-9]+")


class InvalidSpec(ValueError):
    """Raised when a motif-pair token fails grammar or range validation."""

    def __init__(self, token: str, field: str, reason: str):
        self.token = token
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid motif pair {token!r}: field {field} {reason}")


@dataclass(frozen=True)
class Modification:
    """Modification label declared at a 0-based offset of the motif."""

    mod_type: str
    offset: int


@dataclass(frozen=True)
class MotifPairSpec:
    """Immutable motif-pair definition.

    Attributes
    ----------
    motif : str
        Upper-case IUPAC pattern.
    mod1 : Modification
        First modification site.
    mod2 : Modification
        Second modification site, at a different offset.
    """

    motif: str
    mod1: Modification
    mod2: Modification

    @property
    def length(self) -> int:
        return len(self.motif)

    @property
    def reverse_complement(self) -> str:
        return reverse_complement(self.motif)

    @property
    def is_palindromic(self) -> bool:
        return self.motif == self.reverse_complement

    def render(self) -> str:
        """Return the canonical ``MOTIF_TYPE1_POS1_TYPE2_POS2`` form."""
        return f"{self.motif}_{self.mod1.mod_type}_{self.mod1.offset}_{self.mod2.mod_type}_{self.mod2.offset}"

    def __str__(self) -> str:
        return self.render()


def _parse_offset(token: str, field: str, value: str, length: int) -> int:
    if not _OFFSET_PATTERN.fullmatch(value):
        raise InvalidSpec(token, field, f"must be a non-negative integer, got {value!r}")
    offset = int(value)
    if offset >= length:
        raise InvalidSpec(token, field, f"offset {offset} is outside a motif of length {length}")
    return offset


def parse_motif_pair(token: str) -> MotifPairSpec:
    """Parse one ``MOTIF_TYPE1_POS1_TYPE2_POS2`` token into a :class:`MotifPairSpec`."""
    parts = token.split("_")
    if len(parts) != 5:
        raise InvalidSpec(token, "MOTIF_TYPE1_POS1_TYPE2_POS2", f"expects 5 '_'-separated fields, got {len(parts)}")

    motif, type1, pos1, type2, pos2 = parts
    if not motif:
        raise InvalidSpec(token, "MOTIF", "is empty")
    if not is_iupac(motif):
        raise InvalidSpec(token, "MOTIF", f"contains non-IUPAC symbols: {motif!r}")
    motif = motif.upper()

    if not type1:
        raise InvalidSpec(token, "TYPE1", "is empty")
    if not type2:
        raise InvalidSpec(token, "TYPE2", "is empty")

    offset1 = _parse_offset(token, "POS1", pos1, len(motif))
    offset2 = _parse_offset(token, "POS2", pos2, len(motif))
    if offset1 == offset2:
        raise InvalidSpec(token, "POS2", f"must differ from POS1 (both are {offset1})")

    return MotifPairSpec(motif=motif, mod1=Modification(type1, offset1), mod2=Modification(type2, offset2))


def parse_motif_pairs(tokens: Iterable[str]) -> List[MotifPairSpec]:
    """Parse every token, failing on the first invalid one; exact duplicates are dropped."""
    specs: List[MotifPairSpec] = []
    for token in tokens:
        spec = parse_motif_pair(token)
        if spec in specs:
            logging.getLogger(__name__).warning(f"Duplicate motif pair {spec.render()} ignored")
            continue
        specs.append(spec)

    if not specs:
        raise InvalidSpec("", "MOTIFS", "no motif pairs were provided")
    return specs


def declared_mod_types(specs: Iterable[MotifPairSpec]) -> frozenset:
    """Return every modification label declared by ``specs``."""
    return frozenset(label for spec in specs for label in (spec.mod1.mod_type, spec.mod2.mod_type))
