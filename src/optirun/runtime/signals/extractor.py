"""Extract a chartable gap percentage from one line of solver output."""

from __future__ import annotations

import math
import re
from typing import Any, Optional

# First "<number>%" token anywhere in the line; solvers do not agree on a format.
_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)%")

MAX_SAMPLE_VALUE = 1000.0
# Log-scale chart axes cannot take zero.
MIN_SAMPLE_VALUE = 0.0001


def extract_sample(line: Any) -> Optional[float]:
    """Return the first percentage value in ``line``, or ``None``.

    Values above ``MAX_SAMPLE_VALUE`` are rejected as malformed and values
    below ``MIN_SAMPLE_VALUE`` are raised to it. Never raises.
    """
    if not isinstance(line, str):
        return None
    match = _PERCENT_RE.search(line)
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    if value > MAX_SAMPLE_VALUE:
        return None
    return max(value, MIN_SAMPLE_VALUE)
