import math

import pytest

from gstbook.models.calculation import GstBreakdownDetail
from gstbook.models.item import LineItem
from gstbook.services.tax_service import calculate, split_tax_heads, summarize_by_rate, total_tax_heads

from conftest import line


def test_exclusive_totals_and_breakdown_order():
    items = [line(quantity=2, unit_price=100, gst_rate=18), line("Cable", 1, 50, 5), line("Mouse", 1, 100, 18)]
    res = calculate(items, "EXCLUSIVE")

    assert res.total_net_amount == pytest.approx(350)
    assert res.total_gst_amount == pytest.approx(56.5)
    assert res.grand_total == pytest.approx(406.5)
    assert [bd.rate for bd in res.gst_breakdown] == [18, 5]
    assert res.gst_breakdown[0].taxable_amount == pytest.approx(300)
    assert res.gst_breakdown[0].gst_amount == pytest.approx(54)


def test_inclusive_backs_tax_out_of_price():
    res = calculate([line(quantity=1, unit_price=118, gst_rate=18)], "INCLUSIVE")
    assert res.total_net_amount == pytest.approx(100)
    assert res.total_gst_amount == pytest.approx(18)
    assert res.grand_total == pytest.approx(118)


def test_inclusive_is_inverse_of_exclusive():
    excl = calculate([line(quantity=3, unit_price=250, gst_rate=12)], "EXCLUSIVE")
    incl = calculate([line(quantity=3, unit_price=excl.grand_total / 3, gst_rate=12)], "INCLUSIVE")
    assert incl.total_net_amount == pytest.approx(excl.total_net_amount)
    assert incl.total_gst_amount == pytest.approx(excl.total_gst_amount)


@pytest.mark.parametrize("price_type", ["EXCLUSIVE", "INCLUSIVE"])
def test_totals_equal_sum_of_breakdown(price_type):
    items = [line(quantity=q, unit_price=p, gst_rate=r) for q, p, r in [(1, 10, 0), (2, 33.3, 5), (7, 12.5, 28), (1, 99, 5)]]
    res = calculate(items, price_type)
    assert res.total_net_amount == pytest.approx(sum(b.taxable_amount for b in res.gst_breakdown))
    assert res.total_gst_amount == pytest.approx(sum(b.gst_amount for b in res.gst_breakdown))
    assert res.grand_total == pytest.approx(res.total_net_amount + res.total_gst_amount)


def test_inert_lines_are_skipped():
    items = [
        LineItem(description="blank price", quantity=1, unit_price=None),
        LineItem(description="blank qty", quantity="", unit_price=50),
        line(quantity=0),
        line(quantity=1, unit_price=-5),
        line(quantity=1, unit_price=100, gst_rate=5),
    ]
    assert math.isnan(items[0].unit_price)
    res = calculate(items, "EXCLUSIVE")
    assert res.grand_total == pytest.approx(105)
    assert len(res.gst_breakdown) == 1


def test_empty_items_give_zero():
    res = calculate([], "EXCLUSIVE")
    assert res.grand_total == 0
    assert res.gst_breakdown == []


def test_zero_rate_line_has_no_tax():
    res = calculate([line(quantity=2, unit_price=40, gst_rate=0)], "INCLUSIVE")
    assert res.total_gst_amount == 0
    assert res.total_net_amount == pytest.approx(80)


def test_split_intra_state_halves():
    heads = split_tax_heads(GstBreakdownDetail(rate=18, taxable_amount=100, gst_amount=18), "INTRA_STATE")
    assert heads.cgst == pytest.approx(9)
    assert heads.sgst == pytest.approx(9)
    assert heads.igst == 0
    assert heads.total == pytest.approx(18)


def test_split_inter_state_all_igst():
    heads = split_tax_heads(GstBreakdownDetail(rate=5, taxable_amount=100, gst_amount=5), "INTER_STATE")
    assert heads.igst == pytest.approx(5)
    assert heads.cgst == heads.sgst == 0


def test_rate_summary_uses_each_records_transaction_type(business, client):
    from gstbook.services.record_builder import build_invoice

    a, n = build_invoice([line(unit_price=100)], client, business, "EXCLUSIVE", "INTRA_STATE",
                         calculate([line(unit_price=100)], "EXCLUSIVE"), 0)
    b, n = build_invoice([line(unit_price=200)], client, business, "EXCLUSIVE", "INTER_STATE",
                         calculate([line(unit_price=200)], "EXCLUSIVE"), n)
    rows = summarize_by_rate([a, b])
    assert len(rows) == 1
    assert rows[0].taxable_amount == pytest.approx(300)
    assert rows[0].cgst == pytest.approx(9)
    assert rows[0].sgst == pytest.approx(9)
    assert rows[0].igst == pytest.approx(36)
    assert total_tax_heads([a, b]).total == pytest.approx(54)
