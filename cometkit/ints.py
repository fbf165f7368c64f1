"""Joining and splitting integer lists as delimited strings."""

from __future__ import annotations

import re
from typing import Iterable, List

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _join(values: Iterable[int], sep: str) -> str:
    items = list(values)
    if not items:
        return ""
    if len(items) == 1:
        return str(items[0])
    # Each value is followed by the separator, then one trailing character is cut.
    return "".join(f"{v}{sep}" for v in items)[:-1]


def _split(s: str, sep: str, bits: int) -> List[int]:
    if s == "":
        return []
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    result = []
    for part in s.split(sep):
        if not _INT_RE.fullmatch(part):
            raise ValueError(f'parsing "{part}": invalid syntax')
        value = int(part)
        if not low <= value <= high:
            raise ValueError(f'parsing "{part}": value out of range')
        result.append(value)
    return result


def join_int32s(values: Iterable[int], sep: str) -> str:
    """Format integers like ``n1,n2,n3``."""
    return _join(values, sep)


def split_int32s(s: str, sep: str) -> List[int]:
    """Parse a delimited string into 32-bit integers."""
    return _split(s, sep, 32)


def join_int64s(values: Iterable[int], sep: str) -> str:
    """Format integers like ``n1,n2,n3``."""
    return _join(values, sep)


def split_int64s(s: str, sep: str) -> List[int]:
    """Parse a delimited string into 64-bit integers."""
    return _split(s, sep, 64)