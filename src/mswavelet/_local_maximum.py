"""Local maximum detection on CWT coefficient columns.

Three strategies are available:

``classic``
    Two block partitions of the column (offsets ``0`` and ``win_size // 2``).
    The first argmax of a block counts when it is strictly greater than both
    the first and the last element of that block.  Of two consecutive maxima
    closer than ``win_size`` the lower one is then dropped.  A maximum whose
    only qualifying window straddles both partitions is missed.
``faster``
    The same rules evaluated by a streaming scan without reshaping.  Results
    are bit-identical to ``classic``.  This is the default.
``new``
    A true sliding window: a plateau with strictly lower neighbours is a
    maximum if some window of ``win_size`` samples contains no larger value
    and contains one of its samples strictly inside.  It is reported once at
    its centre (the earlier centre for even lengths).

Samples beyond the ends of the signal take the value of the nearest end
sample in all three strategies.
"""

from __future__ import annotations

import logging
from typing import Any

import numba as nb
import numpy as np

from mswavelet._cwt import validate_coefficients
from mswavelet._errors import ConfigurationError, InvalidWindowError

logger = logging.getLogger(__name__)

#: Accepted values of the ``method`` argument.
LOCAL_MAXIMUM_METHODS: tuple[str, ...] = ("classic", "faster", "new")


def local_maximum(x: np.ndarray, win_size: int = 5, method: str = "faster") -> np.ndarray:
    """Flag the local maxima of *x*.

    Parameters
    ----------
    x : numpy.ndarray
        1-D series.
    win_size : int, optional
        Window size in samples.
    method : {'faster', 'classic', 'new'}, optional
        Detection strategy, see the module docstring.

    Returns
    -------
    numpy.ndarray
        Boolean mask, ``True`` at local maxima.

    Raises
    ------
    InvalidWindowError
        If ``win_size < 1`` or ``win_size >= len(x)``.
    ConfigurationError
        For an unknown *method*.

    Examples
    --------
    >>> x = np.array([0, 1, 2, 3, 1, 2, 3, 0, 0, 0, 1, 2, 3, 1, 1, 2, 3, 0], dtype=float)
    >>> np.flatnonzero(local_maximum(x, 4, method="classic")).tolist()
    [6, 12, 16]
    >>> np.flatnonzero(local_maximum(x, 4, method="new")).tolist()
    [3, 6, 12, 16]
    """
    arr = np.ascontiguousarray(x, dtype=np.float64)
    if arr.ndim != 1:
        msg = f"local_maximum expects a 1-D series, got shape {arr.shape}"
        raise ConfigurationError(msg)
    win = int(win_size)
    if win < 1 or win >= arr.size:
        msg = f"window size must be in [1, {arr.size - 1}], got {win_size}"
        raise InvalidWindowError(msg)

    if method == "faster":
        flags = _block_maxima_streaming(arr, win)
        _drop_close_maxima(arr, flags, win)
    elif method == "classic":
        flags = _block_maxima_reshaped(arr, win)
        _drop_close_maxima(arr, flags, win)
    elif method == "new":
        flags = _sliding_window_maxima(arr, win)
    else:
        msg = f"method must be one of {LOCAL_MAXIMUM_METHODS}, got {method!r}"
        raise ConfigurationError(msg)
    return flags.astype(bool)


def get_local_maximum_cwt(
    w_coefs: np.ndarray,
    scales: Any,
    *,
    min_win_size: int = 5,
    amp_threshold: float = 0.0,
    method: str = "faster",
) -> np.ndarray:
    """Detect local maxima in every column of a CWT coefficient matrix.

    The window at scale ``s`` is ``max(2 * s + 1, min_win_size)`` samples.

    Parameters
    ----------
    w_coefs : numpy.ndarray
        ``N x K`` coefficient matrix (column 0 may hold the raw signal).
    scales : sequence of float
        Scale of each column (``0`` for the raw signal).
    min_win_size : int, optional
        Lower bound of the window size.
    amp_threshold : float, optional
        Absolute threshold; maxima with a coefficient below it are zeroed.
    method : {'faster', 'classic', 'new'}, optional
        Local maximum strategy, used for every column of this call.

    Returns
    -------
    numpy.ndarray
        Same shape as *w_coefs*: the coefficient value at each local maximum,
        ``0`` elsewhere.
    """
    coefs, scale_arr = validate_coefficients(w_coefs, scales)
    if method not in LOCAL_MAXIMUM_METHODS:
        msg = f"method must be one of {LOCAL_MAXIMUM_METHODS}, got {method!r}"
        raise ConfigurationError(msg)

    local_max = np.zeros_like(coefs)
    for col, scale in enumerate(scale_arr):
        win = max(int(scale * 2 + 1), int(min_win_size))
        column = coefs[:, col]
        flags = local_maximum(column, win, method=method)
        local_max[flags, col] = column[flags]

    local_max[coefs < amp_threshold] = 0.0
    logger.debug(
        "%d local maxima over %d columns (method=%s, amp_threshold=%g)",
        int(np.count_nonzero(local_max)),
        scale_arr.size,
        method,
        amp_threshold,
    )
    return local_max


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _block_maxima_reshaped(x: np.ndarray, win_size: int) -> np.ndarray:
    """Classic two-partition block maxima via a reshape of the padded series."""
    n = x.size
    flags = np.zeros(n, dtype=np.uint8)
    for offset in (0, win_size // 2):
        n_blocks = -(-(n + offset) // win_size)
        tail = n_blocks * win_size - n - offset
        padded = np.concatenate([np.full(offset, x[0]), x, np.full(tail, x[-1])])
        blocks = padded.reshape(n_blocks, win_size)
        argmax = blocks.argmax(axis=1)
        peak = blocks[np.arange(n_blocks), argmax]
        keep = (peak > blocks[:, 0]) & (peak > blocks[:, -1])
        flags[np.flatnonzero(keep) * win_size + argmax[keep] - offset] = 1
    return flags


@nb.njit(cache=True)
def _block_maxima_streaming(x, win_size):
    n = x.shape[0]
    flags = np.zeros(n, dtype=np.uint8)
    for partition in range(2):
        offset = 0 if partition == 0 else win_size // 2
        total = ((n + offset + win_size - 1) // win_size) * win_size
        for start in range(0, total, win_size):
            first = x[min(max(start - offset, 0), n - 1)]
            best = start
            best_val = first
            for k in range(start + 1, start + win_size):
                val = x[min(max(k - offset, 0), n - 1)]
                if val > best_val:
                    best_val = val
                    best = k
            last = x[min(max(start + win_size - 1 - offset, 0), n - 1)]
            if best_val > first and best_val > last:
                flags[best - offset] = 1
    return flags


def _drop_close_maxima(x: np.ndarray, flags: np.ndarray, win_size: int) -> None:
    """Of consecutive maxima closer than *win_size*, clear the lower one in place."""
    max_ind = np.flatnonzero(flags)
    close = np.flatnonzero(np.diff(max_ind) < win_size)
    if close.size == 0:
        return
    first = max_ind[close]
    second = max_ind[close + 1]
    delta = x[first] - x[second]
    flags[first[delta <= 0]] = 0
    flags[second[delta > 0]] = 0


@nb.njit(cache=True)
def _sliding_window_maxima(x, win_size):
    n = x.shape[0]
    flags = np.zeros(n, dtype=np.uint8)
    if win_size < 3:
        return flags
    a = 0
    while a < n:
        b = a
        while b + 1 < n and x[b + 1] == x[a]:
            b += 1
        value = x[a]
        if a > 0 and b < n - 1 and x[a - 1] < value and x[b + 1] < value:
            # nearest larger sample on each side, only within reach of a window
            left = a - win_size + 1
            for k in range(a - 1, a - win_size + 1, -1):
                if x[min(max(k, 0), n - 1)] > value:
                    left = k
                    break
            right = b + win_size - 1
            for k in range(b + 1, b + win_size - 1):
                if x[min(max(k, 0), n - 1)] > value:
                    right = k
                    break
            lo = max(left + 1, a - win_size + 2)
            hi = min(right - win_size, b - 1)
            if lo <= hi:
                flags[(a + b) // 2] = 1
        a = b + 1
    return flags
