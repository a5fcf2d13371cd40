"""Nominal size parsing.

Field data carries sizes in many spellings: ``2``, ``2.5``, ``1/2``,
``1 1/2``, ``2"``, ``HALF``, reducers such as ``2X4`` or ``1/2 x 3/4``, and the
sentinel ``NOSIZE``. This module turns them into a single diameter value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

NO_SIZE_SENTINELS = frozenset({"NOSIZE", "NO SIZE", "N/A", "NA", "-"})

_DECIMAL_RE = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")
_FRACTION_RE = re.compile(r"^(\d+)/(\d+)$")
_MIXED_RE = re.compile(r"^(\d+)\s+(\d+)/(\d+)$")
_REDUCER_SPLIT_RE = re.compile(r"\s*[xX]\s*")


@dataclass(frozen=True)
class ParsedSize:
    """Result of parsing a nominal size.

    Attributes:
        raw: The input as given (stringified).
        diameter: Effective diameter; the mean of both ends for reducers.
            None when the size is absent, a sentinel, or unparsable.
        is_reducer: True for two-part ``AxB`` sizes.
        first: First reducer diameter.
        second: Second reducer diameter.
        is_sentinel: True when the input explicitly said "no size".
    """

    raw: str
    diameter: float | None
    is_reducer: bool = False
    first: float | None = None
    second: float | None = None
    is_sentinel: bool = False

    @property
    def is_valid(self) -> bool:
        return self.diameter is not None


def _parse_single(text: str) -> float | None:
    text = text.strip()
    if not text:
        return None
    if text.upper() == "HALF":
        return 0.5

    mixed = _MIXED_RE.match(text)
    if mixed:
        whole, num, den = (int(g) for g in mixed.groups())
        if den == 0:
            return None
        value = whole + num / den
    else:
        fraction = _FRACTION_RE.match(text)
        if fraction:
            num, den = (int(g) for g in fraction.groups())
            if den == 0:
                return None
            value = num / den
        elif _DECIMAL_RE.match(text):
            value = float(text)
        else:
            return None

    return value if value > 0 else None


def _normalize(raw: str) -> str:
    text = raw.strip().replace('"', "").replace("''", "")
    text = re.sub(r"\s*/\s*", "/", text)
    return re.sub(r"\s+", " ", text)


def parse_size(raw: object) -> ParsedSize:
    """Parse a nominal size into a diameter.

    Args:
        raw: Size as stored on the component (string or number).

    Returns:
        ParsedSize; ``diameter`` is None for absent, sentinel, zero, negative,
        or otherwise unparsable input.
    """
    if raw is None or isinstance(raw, bool):
        return ParsedSize(raw="" if raw is None else str(raw), diameter=None)

    if isinstance(raw, (int, float)):
        value = float(raw)
        valid = value > 0 and value == value and value != float("inf")
        return ParsedSize(raw=str(raw), diameter=value if valid else None)

    if not isinstance(raw, str):
        return ParsedSize(raw=str(raw), diameter=None)

    text = _normalize(raw)
    if not text:
        return ParsedSize(raw=raw, diameter=None)
    if text.upper() in NO_SIZE_SENTINELS:
        return ParsedSize(raw=raw, diameter=None, is_sentinel=True)

    if re.search(r"[xX]", text):
        parts = _REDUCER_SPLIT_RE.split(text)
        if len(parts) != 2:
            return ParsedSize(raw=raw, diameter=None)
        first = _parse_single(parts[0])
        second = _parse_single(parts[1])
        if first is None or second is None:
            return ParsedSize(raw=raw, diameter=None)
        return ParsedSize(
            raw=raw,
            diameter=(first + second) / 2,
            is_reducer=True,
            first=first,
            second=second,
        )

    return ParsedSize(raw=raw, diameter=_parse_single(text))
