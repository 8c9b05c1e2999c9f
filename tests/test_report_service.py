import csv
from datetime import date

import pytest

from gstbook.models.party import ClientDetails
from gstbook.models.product import Product
from gstbook.services.filing_service import gstr1, gstr3b, month_period, monthly_returns
from gstbook.services.record_builder import build_invoice, build_purchase
from gstbook.services.report_service import (
    RATE_SUMMARY_HEADERS,
    filter_by_date,
    financial_summary,
    inventory_summary,
    profit_and_loss,
    purchases_by_item,
    purchases_by_vendor,
    rate_summary_rows,
    sales_by_client,
    sales_by_item,
    stock_summary,
    write_csv,
)
from gstbook.services.tax_service import calculate, summarize_by_rate

from conftest import line


@pytest.fixture
def books(client, business, vendor):
    walk_in = ClientDetails(name="Walk-in")
    inv1, n = build_invoice([line(quantity=2, unit_price=100)], client, business, "EXCLUSIVE", "INTRA_STATE",
                            calculate([line(quantity=2, unit_price=100)], "EXCLUSIVE"), 0,
                            issue_date=date(2024, 3, 5))
    items2 = [line("Cable", quantity=1, unit_price=50, gst_rate=5, hsn="8544")]
    inv2, n = build_invoice(items2, walk_in, business, "EXCLUSIVE", "INTER_STATE",
                            calculate(items2, "EXCLUSIVE"), n, issue_date=date(2024, 3, 20))
    inv2 = inv2.model_copy(update={"status": "PAID"})
    items3 = [line(quantity=1, unit_price=100)]
    inv3, n = build_invoice(items3, client, business, "EXCLUSIVE", "INTRA_STATE",
                            calculate(items3, "EXCLUSIVE"), n, issue_date=date(2024, 4, 2))
    pitems = [line(quantity=5, unit_price=60)]
    pur = build_purchase(pitems, vendor, "PM-1", "EXCLUSIVE", "INTRA_STATE", calculate(pitems, "EXCLUSIVE"),
                         bill_date=date(2024, 3, 10))
    return [inv1, inv2, inv3], [pur]


def test_filter_by_date_is_inclusive(books):
    invoices, _ = books
    march = filter_by_date(invoices, date(2024, 3, 5), date(2024, 3, 20))
    assert [i.invoice_number for i in march] == ["INV-001", "INV-002"]
    assert filter_by_date(invoices) == invoices


def test_financial_summary(books):
    invoices, purchases = books
    s = financial_summary(invoices, purchases)
    assert s.total_invoiced == pytest.approx(236 + 52.5 + 118)
    assert s.total_collected == pytest.approx(52.5)
    assert s.total_outstanding == pytest.approx(354)
    assert s.unpaid_invoices == 2
    assert s.total_cgst == pytest.approx(27)
    assert s.total_igst == pytest.approx(2.5)
    assert s.total_payables == pytest.approx(354)
    assert s.total_itc_available == pytest.approx(54)
    assert s.total_tax == pytest.approx(s.total_cgst + s.total_sgst + s.total_igst)


def test_profit_counts_only_collected_revenue(books):
    invoices, purchases = books
    pnl = profit_and_loss(invoices, purchases)
    assert pnl.revenue == pytest.approx(52.5)
    assert pnl.expenses == pytest.approx(354)
    assert pnl.profit == pytest.approx(52.5 - 354)


def test_party_and_item_totals(books):
    invoices, purchases = books
    by_client = {r.name: r for r in sales_by_client(invoices)}
    assert by_client["Acme Pvt Ltd"].documents == 2
    assert by_client["Acme Pvt Ltd"].total == pytest.approx(354)
    assert purchases_by_vendor(purchases)[0].total == pytest.approx(354)

    by_item = {r.name: r for r in sales_by_item(invoices)}
    assert by_item["Widget"].quantity == 3
    assert by_item["Widget"].total == pytest.approx(300)

    bought = purchases_by_item(purchases)
    assert [(r.name, r.quantity, r.total) for r in bought] == [("Widget", 5, pytest.approx(300))]


def test_inventory_and_stock_summary():
    products = [
        Product(name="Widget", price=100, track_stock=True, stock=2, low_stock_threshold=5),
        Product(name="Cable", price=10, track_stock=True, stock=0),
        Product(name="Unpriced", track_stock=True, stock=4),
        Product(name="Service", price=500),
    ]
    inv = inventory_summary(products)
    assert inv.tracked_products == 3
    assert inv.low_stock_items == 1
    assert inv.out_of_stock_items == 1
    assert inv.total_stock_value == pytest.approx(200)
    rows = stock_summary(products)
    assert [r[0] for r in rows] == ["Widget", "Cable", "Unpriced"]
    assert rows[0][3] == "Low Stock"


def test_csv_export_quotes_every_cell(tmp_path, books):
    invoices, _ = books
    path = write_csv(tmp_path / "gst.csv", RATE_SUMMARY_HEADERS, rate_summary_rows(summarize_by_rate(invoices)))
    raw = path.read_text(encoding="utf-8")
    assert raw.startswith('"GST Rate (%)","Taxable Value"')
    with path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[1] == ["18", "300.00", "27.00", "27.00", "0.00", "54.00"]
    assert rows[2] == ["5", "50.00", "0.00", "0.00", "2.50", "2.50"]


def test_month_period_handles_leap_year():
    assert month_period(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))


def test_gstr1_splits_b2b_and_b2c(books):
    invoices, _ = books
    r = gstr1(invoices)
    assert [row.invoice_number for row in r.b2b] == ["INV-001", "INV-003"]
    assert r.b2c_by_rate == {5: pytest.approx(50)}
    hsn = {row.hsn: row for row in r.hsn_summary}
    assert hsn["8471"].quantity == 3
    assert hsn["8471"].taxable_value == pytest.approx(300)
    assert hsn["8544"].total_tax == pytest.approx(2.5)


def test_monthly_returns_filter_the_month(books):
    invoices, purchases = books
    r1, r3b = monthly_returns(invoices, purchases, 2024, 3)
    assert [row.invoice_number for row in r1.b2b] == ["INV-001"]
    assert r3b.outward.taxable_value == pytest.approx(250)
    assert r3b.outward.cgst == pytest.approx(18)
    assert r3b.outward.igst == pytest.approx(2.5)
    assert r3b.itc.cgst == pytest.approx(27)
    assert gstr3b([], []).outward.total == 0
