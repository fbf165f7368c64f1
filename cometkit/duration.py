"""Parsing of duration strings such as ``1s`` or ``1h30m``."""

from __future__ import annotations

import re
from datetime import timedelta
from fractions import Fraction
from typing import Union

_UNITS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")
_MAX_NS = (1 << 63) - 1


def parse_duration(text: Union[str, bytes]) -> timedelta:
    """Parse a signed sequence of decimal numbers with units.

    Valid units are ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m`` and
    ``h``. Raises ``ValueError`` on malformed input.
    """
    s = text.decode("utf-8") if isinstance(text, (bytes, bytearray)) else text
    orig = s
    negative = False
    if s and s[0] in "+-":
        negative = s[0] == "-"
        s = s[1:]
    if s == "0":
        return timedelta(0)
    if not s:
        raise ValueError(f'time: invalid duration "{orig}"')
    total = Fraction(0)
    pos = 0
    while pos < len(s):
        m = _COMPONENT.match(s, pos)
        whole, frac, unit = m.groups()
        if not whole and not frac:
            raise ValueError(f'time: invalid duration "{orig}"')
        if not unit:
            raise ValueError(f'time: missing unit in duration "{orig}"')
        if unit not in _UNITS:
            raise ValueError(f'time: unknown unit "{unit}" in duration "{orig}"')
        value = Fraction(int(whole or "0"))
        if frac:
            value += Fraction(int(frac), 10 ** len(frac))
        total += value * _UNITS[unit]
        pos = m.end()
    ns = int(total)
    limit = _MAX_NS + 1 if negative else _MAX_NS
    if ns > limit:
        raise ValueError(f'time: invalid duration "{orig}"')
    micros = round(Fraction(ns, 1000))
    return timedelta(microseconds=-micros if negative else micros)