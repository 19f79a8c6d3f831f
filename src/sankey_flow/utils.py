# -*- coding: utf-8 -*-
"""
sankey_flow.utils
~~~~~~~~~~~~~~~~~

Small helpers shared across the package.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np


def json_safe(obj: Any) -> Any:
    """Make a ``Graph.to_dict()`` payload JSON-serializable.

    NumPy scalars become Python numbers; NaN and infinities (left behind by
    malformed frames) become ``None``.
    """
    if isinstance(obj, dict):
        return {k: json_safe(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [json_safe(v) for v in obj]
    if isinstance(obj, (bool, np.bool_)):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        f = float(obj)
        return None if (math.isnan(f) or math.isinf(f)) else f
    return obj


def is_number(x: Any) -> bool:
    """True for real numbers (bool excluded), including NumPy scalars."""
    if isinstance(x, bool):
        return False
    return isinstance(x, (int, float, np.integer, np.floating))
