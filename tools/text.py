"""Text helpers shared by the pipeline steps."""

import math
import re

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def strip_html(html: str) -> str:
    """Replace tags with spaces and collapse whitespace."""
    return _WS_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()


def round_half_up(value: float) -> int:
    """Round .5 upwards, unlike Python's banker's rounding."""
    return math.floor(value + 0.5)
