from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    cleaned = str(value).strip().replace(",", "").replace("$", "").replace("_", "")
    if not cleaned:
        return None
    try:
        d = Decimal(cleaned)
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def commafy(value: Any, decimals: int = 0, blank_for_none: bool = False) -> str:
    """
    Thousands separators with HALF_UP rounding.
    Unparseable input is returned unchanged; None gives "0" (or "" with blank_for_none).
    """
    d = _to_decimal(value)
    if d is None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "" if blank_for_none else f"{0:,.{decimals}f}"
        return str(value)

    quant = Decimal(1).scaleb(-decimals)
    out = f"{d.quantize(quant, rounding=ROUND_HALF_UP):,.{decimals}f}"
    if out.startswith("-") and not out.strip("-0.,"):
        out = out[1:]
    return out


def usd(value: Any, decimals: int = 0) -> str:
    """$1,234 style money for stats and project totals."""
    d = _to_decimal(value)
    if d is None:
        return "$0"
    sign = "-" if d < 0 else ""
    return f"{sign}${commafy(abs(d), decimals)}"


def register_filters(app) -> None:
    app.jinja_env.filters["commafy"] = commafy
    app.jinja_env.filters["usd"] = usd
    app.jinja_env.globals.setdefault("money", usd)
