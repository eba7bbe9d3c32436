from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum

import numpy as np

from memopair.iupac import encode


class Strand(str, Enum):
    """DNA strand, valued by its pileup/BED symbol."""

    FORWARD = "+"
    REVERSE = "-"

    @classmethod
    def parse(cls, value: str) -> "Strand":
        """Convert a ``+``/``-`` token into a :class:`Strand`."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Invalid strand {value!r}, expected '+' or '-'") from None


@dataclass(frozen=True)
class ReferenceSequence:
    """Named reference record with 0-based coordinates."""

    id: str
    sequence: str

    def __len__(self) -> int:
        return len(self.sequence)

    @functools.cached_property
    def masks(self) -> np.ndarray:
        """IUPAC bitmask encoding of the sequence, computed once."""
        return encode(self.sequence)
