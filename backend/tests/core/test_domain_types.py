"""Domain Types — verifies money handling and enum values."""

from decimal import Decimal

import pytest

from marketplace.core.domain_types import AttachmentKind, ItemType, to_money


def test_to_money_quantizes_half_up():
    assert to_money(Decimal("1.005")) == Decimal("1.01")
    assert to_money("2") == Decimal("2.00")
    assert to_money(3) == Decimal("3.00")


def test_to_money_rejects_floats():
    with pytest.raises(TypeError):
        to_money(1.5)


def test_item_type_values_match_column():
    assert ItemType.SELL.value == "sell"
    assert ItemType.BARTER.value == "barter"


@pytest.mark.parametrize("content_type,expected", [
    ("image/png", AttachmentKind.IMAGE),
    ("image/webp", AttachmentKind.IMAGE),
    ("application/pdf", AttachmentKind.DOCUMENT),
    (None, AttachmentKind.DOCUMENT),
])
def test_attachment_kind_from_content_type(content_type, expected):
    assert AttachmentKind.from_content_type(content_type) is expected
