import numpy as np
from numba import njit


@njit(inline="always")
def _site_matches(seq_masks, start, motif_masks):
    """Check one window: every reference code must be a subset of the motif code."""
    for j in range(motif_masks.shape[0]):
        base = seq_masks[start + j]
        if base == 0 or (base | motif_masks[j]) != motif_masks[j]:
            return False
    return True


@njit(cache=True, nogil=True)
def _match_starts_jit(seq_masks, motif_masks):
    """Return every start position where the encoded motif matches."""
    n = seq_masks.shape[0]
    m = motif_masks.shape[0]
    if m == 0 or n < m:
        return np.empty(0, dtype=np.int64)

    hits = np.empty(n - m + 1, dtype=np.int64)
    count = 0
    for start in range(n - m + 1):
        if _site_matches(seq_masks, start, motif_masks):
            hits[count] = start
            count += 1

    return hits[:count].copy()


def match_starts(seq_masks: np.ndarray, motif_masks: np.ndarray) -> np.ndarray:
    """Find all (overlapping) start positions of ``motif_masks`` in ``seq_masks``."""
    return _match_starts_jit(
        np.ascontiguousarray(seq_masks, dtype=np.uint8), np.ascontiguousarray(motif_masks, dtype=np.uint8)
    )
