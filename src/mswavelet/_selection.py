"""Index-matching utilities shared by peak identification and refinement."""

from __future__ import annotations

import numpy as np


def find_nearest_index(target: float, indices: np.ndarray) -> int:
    """Return the position in *indices* of the entry closest to *target*.

    Ties resolve to the earliest entry.

    Returns
    -------
    int
        Position in *indices*, or ``-1`` if *indices* is empty.

    Examples
    --------
    >>> find_nearest_index(15, np.array([10, 20, 30]))
    0
    """
    arr = np.asarray(indices)
    if arr.size == 0:
        return -1
    return int(np.argmin(np.abs(arr - float(target))))


def exclude_boundary_indices(indices: np.ndarray, length: int, size: int) -> np.ndarray:
    """Return a mask that is ``False`` for indices within *size* samples of either end.

    Examples
    --------
    >>> exclude_boundary_indices(np.array([0, 5, 50, 98]), 100, 5).tolist()
    [False, True, True, False]
    """
    arr = np.asarray(indices)
    size = max(0, int(size))
    return (arr >= size) & (arr < int(length) - size)


def group_nearby_peaks(
    anchor_indices: np.ndarray,
    candidate_indices: np.ndarray,
    window: float,
) -> np.ndarray:
    """Map each candidate to the closest anchor within *window* samples.

    Parameters
    ----------
    anchor_indices : numpy.ndarray
        Positions of the anchors (e.g. accepted major peaks).
    candidate_indices : numpy.ndarray
        Positions to group.
    window : float
        Maximum distance, inclusive.

    Returns
    -------
    numpy.ndarray
        Position in *anchor_indices* of each candidate's anchor, ``-1`` where
        no anchor is close enough.

    Examples
    --------
    >>> group_nearby_peaks(np.array([100, 400]), np.array([90, 250, 420]), 50).tolist()
    [0, -1, 1]
    """
    anchors = np.asarray(anchor_indices, dtype=float)
    candidates = np.asarray(candidate_indices, dtype=float)
    owner = np.full(candidates.size, -1, dtype=int)
    if anchors.size == 0 or candidates.size == 0:
        return owner
    distance = np.abs(candidates[:, np.newaxis] - anchors[np.newaxis, :])
    nearest = np.argmin(distance, axis=1)
    close = distance[np.arange(candidates.size), nearest] <= window
    owner[close] = nearest[close]
    return owner
