import math

import pytest

from gstbook.models.item import LineItem
from gstbook.models.product import Product
from gstbook.services.stock_service import (
    PURCHASE,
    SALE,
    apply_stock_delta,
    find_tracked_product,
    stock_status,
)

from conftest import line


def test_sale_matches_name_ignoring_case(widget):
    out = apply_stock_delta([widget], [line("widget", quantity=3)], SALE)
    assert out[0].stock == pytest.approx(7)
    assert widget.stock == 10


def test_purchase_increments(widget):
    out = apply_stock_delta([widget], [line("WIDGET", quantity=5)], PURCHASE)
    assert out[0].stock == pytest.approx(15)


def test_untracked_product_never_moves():
    p = Product(name="Consulting", price=500, track_stock=False, stock=0)
    out = apply_stock_delta([p], [line("Consulting", quantity=4)], SALE)
    assert out[0].stock == 0


def test_stock_may_go_negative(widget):
    out = apply_stock_delta([widget], [line(quantity=12)], SALE)
    assert out[0].stock == pytest.approx(-2)
    assert stock_status(out[0]) == "Out of Stock"


def test_first_tracked_product_wins_on_duplicate_names():
    a = Product(name="Widget", track_stock=True, stock=5)
    b = Product(name="widget", track_stock=True, stock=5)
    out = apply_stock_delta([a, b], [line("Widget", quantity=2)], SALE)
    assert [p.stock for p in out] == [3, 5]
    assert find_tracked_product([a, b], "WIDGET") is a


def test_unset_quantity_moves_nothing(widget):
    item = LineItem(description="Widget", quantity=None, unit_price=100)
    assert math.isnan(item.quantity)
    out = apply_stock_delta([widget], [item], SALE)
    assert out[0].stock == 10


def test_several_lines_add_up(widget):
    out = apply_stock_delta([widget], [line(quantity=1), line("wIdGeT", quantity=2.5)], SALE)
    assert out[0].stock == pytest.approx(6.5)


def test_bad_direction_rejected(widget):
    with pytest.raises(ValueError):
        apply_stock_delta([widget], [line()], 2)


@pytest.mark.parametrize("stock,expected", [(0, "Out of Stock"), (3, "Low Stock"), (4, "In Stock")])
def test_stock_status(widget, stock, expected):
    assert stock_status(widget.model_copy(update={"stock": stock})) == expected
