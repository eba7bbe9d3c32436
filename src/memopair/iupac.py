"""IUPAC nucleotide alphabet as fixed lookup tables.

Every symbol is represented by a 4-bit mask over ``A=1, C=2, G=4, T=8``.
Ambiguity codes are the union of the bases they stand for, so set membership
and subset tests become bitwise operations.
"""

import numpy as np

IUPAC_MASKS = {
    "A": 0b0001,
    "C": 0b0010,
    "G": 0b0100,
    "T": 0b1000,
    "R": 0b0101,
    "Y": 0b1010,
    "S": 0b0110,
    "W": 0b1001,
    "K": 0b1100,
    "M": 0b0011,
    "B": 0b1110,
    "D": 0b1101,
    "H": 0b1011,
    "V": 0b0111,
    "N": 0b1111,
}

IUPAC_COMPLEMENT = {
    "A": "T",
    "C": "G",
    "G": "C",
    "T": "A",
    "R": "Y",
    "Y": "R",
    "S": "S",
    "W": "W",
    "K": "M",
    "M": "K",
    "B": "V",
    "D": "H",
    "H": "D",
    "V": "B",
    "N": "N",
}

IUPAC_SYMBOLS = frozenset(IUPAC_MASKS)

# Byte -> mask translation table; unknown characters map to 0 and never match.
_ENCODE_TABLE = bytearray(256)
for _symbol, _mask in IUPAC_MASKS.items():
    _ENCODE_TABLE[ord(_symbol)] = _mask
    _ENCODE_TABLE[ord(_symbol.lower())] = _mask
_ENCODE_TABLE = bytes(_ENCODE_TABLE)

# Mask -> complement mask (bit order A,C,G,T reversed).
COMPLEMENT_MASKS = np.array(
    [((m & 1) << 3) | ((m & 2) << 1) | ((m & 4) >> 1) | ((m & 8) >> 3) for m in range(16)],
    dtype=np.uint8,
)


def is_iupac(sequence: str) -> bool:
    """Return True if every character of ``sequence`` is an IUPAC code (any case)."""
    return bool(sequence) and all(char in IUPAC_SYMBOLS for char in sequence.upper())


def encode(sequence: str) -> np.ndarray:
    """Encode a nucleotide string into a ``uint8`` array of IUPAC bitmasks."""
    raw = sequence.encode("ascii", errors="replace")
    return np.frombuffer(raw.translate(_ENCODE_TABLE), dtype=np.uint8).copy()


def reverse_complement(sequence: str) -> str:
    """Return the reverse complement of an IUPAC string (upper-case)."""
    return "".join(IUPAC_COMPLEMENT[char] for char in reversed(sequence.upper()))


def reverse_complement_masks(masks: np.ndarray) -> np.ndarray:
    """Reverse complement an encoded mask array."""
    return COMPLEMENT_MASKS[masks[::-1]]
