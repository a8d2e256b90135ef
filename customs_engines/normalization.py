"""
customs_engines.normalization -- Key normalization, name folding, number
parsing and Turkish collation.

Responsibility:
    Canonicalize free-text product identifiers into comparable keys so that
    packing-list names and catalog codes can meet in one bucket map.  Also
    hosts the small text helpers the later stages share: diacritic-folded
    attribute names, lenient decimal parsing, and a collation key that
    orders text the way a Turkish locale compare does.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Imports nothing from the
    kernel.

Invariants enforced:
    - ``normalize_key`` is idempotent: normalize_key(normalize_key(s)) ==
      normalize_key(s) for every string s.
    - ``normalize_key`` removes only whitespace runs and zero-width marks;
      hyphens, slashes and other punctuation are preserved, so "ABC-123"
      and "ABC123" remain distinct keys.
    - ``parse_decimal`` never raises; malformed input yields ``None``.

Usage:
    from customs_engines.normalization import normalize_key, parse_decimal

    normalize_key("  abc-12   x ")         # "ABC-12 X"
    parse_decimal("1.234,5")               # Decimal("1234.5")
"""

from __future__ import annotations

import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any

# ---------------------------------------------------------------------------
# Key normalization
# ---------------------------------------------------------------------------

_ZERO_WIDTH = re.compile("[\u200b-\u200d\u2060\ufeff]")
_WHITESPACE = re.compile(r"\s+")

# upper() can leave a string that NFKC rewrites again (e.g. Greek letters
# with stacked accents), so a key is re-normalized until it is stable.
_MAX_PASSES = 4


def _normalize_once(value: str) -> str:
    value = unicodedata.normalize("NFKC", value)
    value = _ZERO_WIDTH.sub("", value)
    value = _WHITESPACE.sub(" ", value.strip())
    return unicodedata.normalize("NFKC", value.upper())


def normalize_key(text: str | None) -> str:
    """Canonical comparison key for a free-text product identifier.

    NFKC, zero-width/BOM removal, trim, whitespace collapse, uppercase.
    ``None`` and blank input give ``""``.
    """
    if text is None:
        return ""
    value = str(text)
    for _ in range(_MAX_PASSES):
        normalized = _normalize_once(value)
        if normalized == value:
            break
        value = normalized
    return value


# ---------------------------------------------------------------------------
# Attribute name folding
# ---------------------------------------------------------------------------

_DOTLESS = str.maketrans({"\u0131": "i", "\u0130": "I"})


def fold_name(text: str | None) -> str:
    """Case- and diacritic-insensitive form of an attribute name.

    "Ağırlık (KG)" -> "agirlik (kg)", "ÜRÜN TİPİ" -> "urun tipi".
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).translate(_DOTLESS))
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return stripped.casefold().strip()


# ---------------------------------------------------------------------------
# Number parsing
# ---------------------------------------------------------------------------


# Numeric(38, 9) columns hold nothing larger; exponents beyond this are bad data.
_MAX_ADJUSTED_EXPONENT = 38


def _in_range(value: Decimal) -> Decimal | None:
    if not value.is_finite():
        return None
    if value.is_zero():
        return value if abs(value.adjusted()) <= _MAX_ADJUSTED_EXPONENT else Decimal(0)
    if abs(value.adjusted()) > _MAX_ADJUSTED_EXPONENT:
        return None
    return value


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a number written with either comma or dot as decimal separator.

    Accepts ``Decimal``, ``int``, ``float`` and strings such as "12,5",
    "1.234,56", "1,234.56" or "0.75".  When both separators appear the
    right-most one is the decimal separator; a lone comma is a decimal
    comma; repeated dots are thousands separators.

    Returns:
        A finite Decimal, or None when the value is missing, malformed or
        outside 1e-38 .. 1e38 in magnitude ("9e999999" would overflow as
        soon as it is multiplied by a quantity).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return _in_range(value)
    if isinstance(value, (int, float)):
        value = str(value)

    text = _WHITESPACE.sub("", str(value))
    if not text:
        return None

    has_comma = "," in text
    has_dot = "." in text
    if has_comma and has_dot:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif has_comma:
        text = text.replace(".", "").replace(",", ".")
    elif text.count(".") > 1:
        head, _, tail = text.rpartition(".")
        text = head.replace(".", "") + "." + tail

    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    return _in_range(parsed)


# ---------------------------------------------------------------------------
# Collation
# ---------------------------------------------------------------------------

_TR_ALPHABET = "abcçdefgğhıijklmnoöpqrsştuüvwxyz"
_TR_RANK = {ch: i for i, ch in enumerate(_TR_ALPHABET)}
_TR_LOWER = str.maketrans({"I": "\u0131", "\u0130": "i"})


def _primary_weight(ch: str) -> tuple[int, int]:
    if ch in _TR_RANK:
        return (2, _TR_RANK[ch])
    if ch.isdigit():
        return (1, int(unicodedata.digit(ch, 0)))
    if ch.isalpha():
        base = unicodedata.normalize("NFD", ch)[0]
        if base in _TR_RANK:
            return (2, _TR_RANK[base])
        return (3, ord(ch))
    return (0, ord(ch))


def collation_key(text: str | None) -> tuple:
    """Sort key approximating a Turkish (tr) locale string compare.

    Primary order follows the Turkish alphabet (c < ç < d, g < ğ < h,
    ı < i, o < ö < p, s < ş < t, u < ü < v) case-insensitively, with
    punctuation before digits before letters.  Ties break lowercase-first.
    """
    value = text or ""
    lowered = value.translate(_TR_LOWER).lower()
    return (tuple(_primary_weight(ch) for ch in lowered), value.swapcase())
