from datetime import date, datetime

import pytest

from gstbook.models.banking import BankTransaction
from gstbook.services.reconciliation_service import (
    create_expense_from_transaction,
    find_matches,
    reconcile_invoice,
    reconcile_purchase,
    unreconciled,
)
from gstbook.services.record_builder import build_invoice, build_purchase
from gstbook.services.tax_service import calculate, summarize_by_rate

from conftest import line

NOW = datetime(2024, 5, 2, 10, 30)


def _invoice(client, business, price, seq=0):
    items = [line(unit_price=price, gst_rate=0)]
    inv, _ = build_invoice(items, client, business, "EXCLUSIVE", "INTRA_STATE", calculate(items, "EXCLUSIVE"), seq)
    return inv


def _purchase(vendor, price, bill="B-1"):
    items = [line(unit_price=price, gst_rate=0)]
    return build_purchase(items, vendor, bill, "EXCLUSIVE", "INTRA_STATE", calculate(items, "EXCLUSIVE"))


def _tx(amount, kind="CREDIT", day=date(2024, 5, 1)):
    return BankTransaction(date=day, description="NEFT", amount=amount, type=kind)


def test_credit_matches_unpaid_invoice_within_a_cent(client, business):
    inv = _invoice(client, business, 1000)
    assert find_matches(_tx(1000.004), [inv], []).invoices == [inv]
    assert find_matches(_tx(1000.02), [inv], []).is_empty()


def test_paid_invoices_are_not_candidates(client, business):
    inv = _invoice(client, business, 1000).model_copy(update={"status": "PAID"})
    assert find_matches(_tx(1000), [inv], []).is_empty()


def test_debit_only_looks_at_purchases(client, business, vendor):
    inv = _invoice(client, business, 500)
    pur = _purchase(vendor, 500)
    found = find_matches(_tx(500, "DEBIT"), [inv], [pur])
    assert found.invoices == []
    assert found.purchases == [pur]


def test_reconcile_invoice_marks_both_sides(client, business):
    inv = _invoice(client, business, 1000)
    tx = _tx(1000)
    tx2, inv2 = reconcile_invoice(tx, inv, NOW)

    assert tx2.status == "RECONCILED"
    assert inv2.status == "PAID"
    assert inv2.payment_date == NOW
    assert inv2.reconciliation_status == "RECONCILED"
    assert inv2.reconciled_date == NOW
    assert tx.status == "UNRECONCILED"
    assert inv.status == "UNPAID"


def test_reconcile_rejects_wrong_direction(client, business, vendor):
    with pytest.raises(ValueError):
        reconcile_invoice(_tx(10, "DEBIT"), _invoice(client, business, 10), NOW)
    with pytest.raises(ValueError):
        reconcile_purchase(_tx(10, "CREDIT"), _purchase(vendor, 10), NOW)


def test_reconcile_purchase(vendor):
    tx2, pur2 = reconcile_purchase(_tx(250, "DEBIT"), _purchase(vendor, 250), NOW)
    assert tx2.status == "RECONCILED"
    assert pur2.status == "PAID"
    assert pur2.reconciled_date == NOW


def test_expense_from_unmatched_debit(vendor):
    tx = _tx(799.5, "DEBIT", day=date(2024, 4, 28))
    tx2, exp = create_expense_from_transaction(tx, vendor, "Office rent", NOW)

    assert tx2.status == "RECONCILED"
    assert exp.bill_number == "EXP-2024-05-02"
    assert exp.issue_date == date(2024, 4, 28)
    assert exp.status == "PAID"
    assert exp.reconciliation_status == "RECONCILED"
    assert exp.total_amount == pytest.approx(799.5)
    assert exp.calculation_result.total_gst_amount == 0
    assert [(b.rate, b.taxable_amount, b.gst_amount) for b in exp.calculation_result.gst_breakdown] == [(0, 799.5, 0)]
    assert summarize_by_rate([exp])[0].taxable_amount == pytest.approx(799.5)
    item = exp.items[0]
    assert (item.description, item.hsn, item.quantity, item.gst_rate) == ("Office rent", "N/A", 1, 0)


def test_expense_needs_debit_and_description(vendor):
    with pytest.raises(ValueError):
        create_expense_from_transaction(_tx(10, "CREDIT"), vendor, "x", NOW)
    with pytest.raises(ValueError):
        create_expense_from_transaction(_tx(10, "DEBIT"), vendor, "", NOW)


def test_unreconciled_oldest_first():
    late = _tx(1, day=date(2024, 3, 9))
    early = _tx(2, day=date(2024, 3, 1))
    done = _tx(3, day=date(2024, 2, 1)).model_copy(update={"status": "RECONCILED"})
    assert unreconciled([late, done, early]) == [early, late]


def test_reconciled_line_cannot_be_used_again(client, business, vendor):
    done = _tx(1000).model_copy(update={"status": "RECONCILED"})
    with pytest.raises(ValueError):
        reconcile_invoice(done, _invoice(client, business, 1000), NOW)
    spent = _tx(40, "DEBIT").model_copy(update={"status": "RECONCILED"})
    with pytest.raises(ValueError):
        reconcile_purchase(spent, _purchase(vendor, 40), NOW)
    with pytest.raises(ValueError):
        create_expense_from_transaction(spent, vendor, "Rent", NOW)


def test_settled_records_are_rejected(client, business, vendor):
    paid = _invoice(client, business, 1000).model_copy(update={"status": "PAID"})
    with pytest.raises(ValueError):
        reconcile_invoice(_tx(1000), paid, NOW)
    paid_bill = _purchase(vendor, 40).model_copy(update={"status": "PAID"})
    with pytest.raises(ValueError):
        reconcile_purchase(_tx(40, "DEBIT"), paid_bill, NOW)
