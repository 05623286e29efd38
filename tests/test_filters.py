from decimal import Decimal

import pytest

from ltcfund.filters import commafy, usd


@pytest.mark.parametrize(
    "value, kwargs, expected",
    [
        (1234567, {}, "1,234,567"),
        ("1,234.5", {"decimals": 2}, "1,234.50"),
        (Decimal("2.5"), {}, "3"),
        (-0.4, {}, "0"),
        (None, {}, "0"),
        (None, {"blank_for_none": True}, ""),
        ("n/a", {}, "n/a"),
    ],
)
def test_commafy(value, kwargs, expected):
    assert commafy(value, **kwargs) == expected


@pytest.mark.parametrize(
    "value, decimals, expected",
    [
        (3500.0, 0, "$3,500"),
        ("$1,200", 0, "$1,200"),
        (-20, 0, "-$20"),
        (25, 2, "$25.00"),
        (None, 0, "$0"),
    ],
)
def test_usd(value, decimals, expected):
    assert usd(value, decimals) == expected


def test_filters_are_registered(app):
    assert app.jinja_env.filters["usd"] is usd
    assert app.jinja_env.filters["commafy"] is commafy
