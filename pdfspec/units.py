"""Length parsing for document specifications."""
import re

_U = re.compile(r'^([\-\d.]+)\s*(mm|in|pt|cm|px)?$')
_FACTORS = {'mm': 2.8346, 'cm': 28.346, 'in': 72.0, 'pt': 1.0, 'px': 1.0}


def to_pt(s):
    """Convert a number or a unit string ("12mm", "1in", "10pt") to points."""
    if s is None or s == "" or isinstance(s, bool):
        return 0.0
    if isinstance(s, (int, float)):
        return float(s)
    m = _U.match(str(s).strip().lower())
    if not m:
        return 0.0
    try:
        n = float(m.group(1))
    except ValueError:
        return 0.0
    return n * _FACTORS[m.group(2) or 'pt']


def to_pt_or(s, default):
    """Like to_pt, but missing values fall back to ``default``."""
    if s is None or s == "":
        return float(default)
    return to_pt(s)
