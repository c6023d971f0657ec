"""Ridge lines linking local maxima across CWT scales.

Ridges are traced from the coarsest column towards column 0.  Open ridges are
kept in an arena of mutable records addressed by integer handles; only the
finished ridges are exposed, as immutable :class:`RidgeLine` objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from mswavelet._cwt import validate_coefficients
from mswavelet._equality import dataclass_equal

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class RidgeLine:
    """A chain of local maxima belonging to one peak.

    Attributes
    ----------
    name : str
        ``"<level>_<index>"``: finest linked column and position.
    columns : numpy.ndarray
        Column of each linked maximum, descending (coarse to fine).
    positions : numpy.ndarray
        Signal position of each linked maximum.
    scales : numpy.ndarray
        Scale of each linked maximum.
    gap_count : int
        Consecutive columns without a link when the ridge was finished.
    """

    name: str
    columns: np.ndarray
    positions: np.ndarray
    scales: np.ndarray
    gap_count: int = 0

    def __len__(self) -> int:
        return int(self.columns.size)

    def __eq__(self, other: object) -> bool:
        return dataclass_equal(self, other)

    @property
    def seed_column(self) -> int:
        return int(self.columns[0])

    @property
    def seed_index(self) -> int:
        return int(self.positions[0])

    @property
    def max_scale(self) -> float:
        """Largest scale reached by the ridge (its seed scale)."""
        return float(self.scales[0])

    @property
    def level(self) -> int:
        """Finest column reached by the ridge."""
        return int(self.columns[-1])

    @property
    def index(self) -> int:
        """Signal position at the finest column reached."""
        return int(self.positions[-1])


@dataclass
class _OpenRidge:
    columns: list[int] = field(default_factory=list)
    positions: list[int] = field(default_factory=list)
    gap: int = 0


def get_ridge(
    local_max: np.ndarray,
    scales: Any = None,
    *,
    gap_threshold: int = 3,
    scale_skip: int | None = None,
    min_win_size: int = 5,
    seed_min_scale: float = 2.0,
) -> list[RidgeLine]:
    """Link the local maxima of a CWT local-maximum matrix into ridge lines.

    Parameters
    ----------
    local_max : numpy.ndarray
        ``N x K`` matrix, nonzero at local maxima
        (output of :func:`~mswavelet.get_local_maximum_cwt`).
    scales : sequence of float, optional
        Scale of each column; defaults to ``0, 1, ..., K - 1``.
    gap_threshold : int, optional
        A ridge is finished once it misses more than this many consecutive
        columns.
    scale_skip : int or None, optional
        Column index stepped over entirely (no linking, no gap, no seeding).
    min_win_size : int, optional
        Lower bound of the position tolerance.
    seed_min_scale : float, optional
        Unclaimed maxima start new ridges only at columns whose scale is at
        least this value (or at the first column that has any maxima).

    Returns
    -------
    list of RidgeLine
        Ordered by seed scale descending, then seed position ascending.

    Notes
    -----
    The position tolerance at scale ``s`` is ``max(2 * s + 1, min_win_size)``
    samples.  When several ridges reach for the same maximum the closest one
    wins (the older ridge on ties); the others fall back to their next
    closest unclaimed maximum or record a gap.
    """
    lm = np.asarray(local_max, dtype=float)
    if lm.ndim == 1:
        lm = lm[:, np.newaxis]
    if scales is None:
        scales = np.arange(lm.shape[-1], dtype=float)
    lm, scale_arr = validate_coefficients(lm, scales)
    n_cols = lm.shape[1]
    if n_cols == 0 or lm.shape[0] == 0:
        return []

    arena: list[_OpenRidge] = []
    active: list[int] = []
    for col in range(n_cols - 1, -1, -1):
        if scale_skip is not None and col == scale_skip:
            continue
        scale = float(scale_arr[col])
        maxima = np.flatnonzero(lm[:, col])
        claimed = np.zeros(maxima.size, dtype=bool)

        if active:
            tolerance = max(int(scale * 2 + 1), int(min_win_size))
            last = [arena[handle].positions[-1] for handle in active]
            slots = _match_nearest(last, maxima, tolerance)
            still_open: list[int] = []
            for handle, slot in zip(active, slots, strict=True):
                ridge = arena[handle]
                if slot >= 0:
                    claimed[slot] = True
                    ridge.columns.append(col)
                    ridge.positions.append(int(maxima[slot]))
                    ridge.gap = 0
                    still_open.append(handle)
                else:
                    ridge.gap += 1
                    if ridge.gap <= gap_threshold:
                        still_open.append(handle)
            active = still_open

        if not arena or scale >= seed_min_scale:
            for slot in np.flatnonzero(~claimed):
                arena.append(_OpenRidge(columns=[col], positions=[int(maxima[slot])]))
                active.append(len(arena) - 1)

    ridges = [_finish(ridge, scale_arr) for ridge in arena]
    logger.debug("%d ridges from %d columns", len(ridges), n_cols)
    return ridges


def _match_nearest(last_positions: list[int], maxima: np.ndarray, tolerance: int) -> list[int]:
    """Assign each ridge the closest free maximum within *tolerance*, or -1."""
    candidates: list[tuple[int, int, int]] = []
    for order, pos in enumerate(last_positions):
        lo = int(np.searchsorted(maxima, pos - tolerance, side="left"))
        hi = int(np.searchsorted(maxima, pos + tolerance, side="right"))
        for slot in range(lo, hi):
            candidates.append((abs(int(maxima[slot]) - pos), order, slot))
    candidates.sort()

    slots = [-1] * len(last_positions)
    taken: set[int] = set()
    for _, order, slot in candidates:
        if slots[order] < 0 and slot not in taken:
            slots[order] = slot
            taken.add(slot)
    return slots


def _finish(ridge: _OpenRidge, scales: np.ndarray) -> RidgeLine:
    columns = np.asarray(ridge.columns, dtype=int)
    positions = np.asarray(ridge.positions, dtype=int)
    return RidgeLine(
        name=f"{columns[-1]}_{positions[-1]}",
        columns=columns,
        positions=positions,
        scales=scales[columns],
        gap_count=ridge.gap,
    )
