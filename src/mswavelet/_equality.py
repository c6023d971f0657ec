"""Field-wise equality for dataclasses that hold numpy arrays."""

from __future__ import annotations

import math
from dataclasses import fields
from typing import Any

import numpy as np


def dataclass_equal(left: Any, right: Any) -> Any:
    """Compare two dataclass instances field by field.

    Array fields are compared with :func:`numpy.array_equal` and NaN matches
    NaN, so two runs on the same input compare equal.  Returns
    ``NotImplemented`` for instances of different types.
    """
    if type(left) is not type(right):
        return NotImplemented
    return all(
        values_equal(getattr(left, f.name), getattr(right, f.name)) for f in fields(left)
    )


def values_equal(a: Any, b: Any) -> bool:
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        a, b = np.asarray(a), np.asarray(b)
        floating = a.dtype.kind in "fc" or b.dtype.kind in "fc"
        return bool(np.array_equal(a, b, equal_nan=floating))
    if isinstance(a, (tuple, list)) and isinstance(b, (tuple, list)):
        return (
            type(a) is type(b)
            and len(a) == len(b)
            and all(values_equal(x, y) for x, y in zip(a, b))
        )
    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True
    return bool(a == b)
