from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple, Union

from gstbook.models.banking import BankTransaction
from gstbook.models.common import PaymentStatus, PriceType, TransactionType
from gstbook.models.invoice import InvoiceRecord, LogisticsDetails
from gstbook.models.item import LineItem
from gstbook.models.party import ClientDetails, Vendor
from gstbook.models.purchase import PurchaseRecord
from gstbook.models.quote import QuotationRecord
from gstbook.models.recurring import BillingFrequency, RecurringProfile
from gstbook.services import filing_service, report_service, stock_service
from gstbook.services.banking_service import BankingService
from gstbook.services.catalog_service import CatalogService
from gstbook.services.document_service import DocumentKind, DocumentService
from gstbook.services.invoice_service import InvoiceService
from gstbook.services.party_service import PartyService
from gstbook.services.purchase_service import PurchaseService
from gstbook.services.quote_service import QuotationService
from gstbook.services.reconciliation_service import (
    MatchCandidates,
    create_expense_from_transaction,
    find_matches,
    reconcile_invoice,
    reconcile_purchase,
)
from gstbook.services.record_builder import (
    build_invoice,
    build_purchase,
    build_quotation,
    make_payment_link,
)
from gstbook.services.recurring_service import RecurringService, SchedulerResult, advance_profiles
from gstbook.services.settings_service import (
    INVOICE_SEQ,
    QUOTATION_SEQ,
    SettingsService,
    resolve_data_dir,
)
from gstbook.services.statement_import import read_statement
from gstbook.services.tax_service import calculate

log = logging.getLogger(__name__)

RecordKind = Literal["invoice", "purchase"]


class Bookkeeper:
    """
    Ties the services together over one data directory.

    Every operation that touches several files (invoice + stock + counter,
    bank line + invoice, ...) goes through here so the files stay consistent.
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self.data_dir = resolve_data_dir(data_dir)
        d = self.data_dir
        self.settings = SettingsService(d / "settings.json")
        self.invoices = InvoiceService(d / "invoices.json")
        self.quotations = QuotationService(d / "quotations.json")
        self.purchases = PurchaseService(d / "purchases.json")
        self.catalog = CatalogService(d / "products.json")
        self.parties = PartyService(d / "clients.json", d / "vendors.json")
        self.recurring = RecurringService(d / "recurring_profiles.json")
        self.banking = BankingService(d / "bank_transactions.json")
        self._boot_result: Optional[SchedulerResult] = None

    # ----------- boot -----------
    def boot(self, today: Union[date, datetime, None] = None) -> SchedulerResult:
        """Recurring catch-up. Runs once per Bookkeeper; later calls return the first result."""
        if self._boot_result is not None:
            log.warning("Bookkeeper already booted, catch-up not run again")
            return self._boot_result

        result = advance_profiles(
            self.recurring.list_profiles(),
            self.catalog.list_products(),
            self.settings.load_business(),
            self.settings.invoice_counter(),
            reference_date=today,
            settings=self.settings.load(),
        )
        if result.generated_invoices:
            # history is newest first
            self.invoices.prepend(list(reversed(result.generated_invoices)))
            self.catalog.replace_products(result.products)
            self.settings.set_counter(INVOICE_SEQ, result.invoice_counter)
        self.recurring.save_all(result.updated_profiles)
        self._boot_result = result
        return result

    # ----------- sales -----------
    def generate_invoice(
        self,
        items: List[LineItem],
        client: ClientDetails,
        price_type: PriceType = "EXCLUSIVE",
        transaction_type: TransactionType = "INTRA_STATE",
        *,
        issue_date: Optional[date] = None,
        logistics: Optional[LogisticsDetails] = None,
        custom_field_values: Optional[Dict[str, str]] = None,
        fresh_item_ids: bool = False,
    ) -> InvoiceRecord:
        calc = calculate(items, price_type)
        invoice, seq = build_invoice(
            items, client, self.settings.load_business(), price_type, transaction_type, calc,
            self.settings.invoice_counter(),
            issue_date=issue_date,
            payment_link=make_payment_link(self.settings.load()),
            logistics=logistics,
            custom_field_values=custom_field_values,
            fresh_item_ids=fresh_item_ids,
        )
        self.invoices.prepend([invoice])
        self._move_stock(invoice.items, stock_service.SALE)
        self.settings.set_counter(INVOICE_SEQ, seq)
        log.info("Invoice %s created for %s (%.2f)", invoice.invoice_number, client.name, invoice.total_amount)
        return invoice

    def generate_quotation(
        self,
        items: List[LineItem],
        client: ClientDetails,
        price_type: PriceType = "EXCLUSIVE",
        transaction_type: TransactionType = "INTRA_STATE",
        *,
        issue_date: Optional[date] = None,
        custom_field_values: Optional[Dict[str, str]] = None,
    ) -> QuotationRecord:
        calc = calculate(items, price_type)
        quote, seq = build_quotation(
            items, client, self.settings.load_business(), price_type, transaction_type, calc,
            self.settings.quotation_counter(),
            issue_date=issue_date,
            custom_field_values=custom_field_values,
        )
        self.quotations.add_quotation(quote)
        self.settings.set_counter(QUOTATION_SEQ, seq)
        log.info("Quotation %s created for %s", quote.quotation_number, client.name)
        return quote

    def convert_quotation(self, quote_id: str, issue_date: Optional[date] = None) -> InvoiceRecord:
        """New invoice from a quotation's items and pricing. The quotation is left as is."""
        quote = self.quotations.get_by_id(quote_id)
        if quote is None:
            raise ValueError(f"quotation {quote_id} not found")
        return self.generate_invoice(
            quote.items, quote.client, quote.price_type, quote.transaction_type,
            issue_date=issue_date,
            custom_field_values=quote.custom_field_values,
            fresh_item_ids=True,
        )

    def set_invoice_status(self, invoice_id: str, status: PaymentStatus) -> InvoiceRecord:
        return self.invoices.set_status(invoice_id, status)

    # ----------- purchases -----------
    def record_purchase(
        self,
        items: List[LineItem],
        vendor: Vendor,
        bill_number: str,
        price_type: PriceType = "EXCLUSIVE",
        transaction_type: TransactionType = "INTRA_STATE",
        *,
        bill_date: Optional[date] = None,
    ) -> PurchaseRecord:
        calc = calculate(items, price_type)
        purchase = build_purchase(items, vendor, bill_number, price_type, transaction_type, calc, bill_date=bill_date)
        self.purchases.add_purchase(purchase)
        self._move_stock(purchase.items, stock_service.PURCHASE)
        log.info("Purchase %s recorded from %s", purchase.bill_number, vendor.name)
        return purchase

    def _move_stock(self, items: List[LineItem], direction: int) -> None:
        products = self.catalog.list_products()
        deltas = stock_service.stock_deltas(products, items, direction)
        if deltas:
            self.catalog.replace_products(stock_service.apply_deltas(products, deltas))

    # ----------- recurring -----------
    def create_profile(
        self,
        client: ClientDetails,
        items: List[LineItem],
        start_date: date,
        frequency: BillingFrequency = "MONTHLY",
        **kwargs,
    ) -> RecurringProfile:
        return self.recurring.create_profile(client, items, start_date, frequency=frequency, **kwargs)

    def toggle_profile_status(self, profile_id: str) -> RecurringProfile:
        return self.recurring.toggle_status(profile_id)

    # ----------- banking -----------
    def import_statement(self, path: Union[str, Path]) -> List[BankTransaction]:
        txs = read_statement(path)
        self.banking.add_many(txs)
        log.info("Imported %d bank transaction(s) from %s", len(txs), Path(path).name)
        return txs

    def _transaction(self, tx_id: str) -> BankTransaction:
        tx = self.banking.get_by_id(tx_id)
        if tx is None:
            raise ValueError(f"bank transaction {tx_id} not found")
        return tx

    def find_matches(self, tx_id: str) -> MatchCandidates:
        return find_matches(
            self._transaction(tx_id), self.invoices.list_invoices(), self.purchases.list_purchases()
        )

    def reconcile(
        self, tx_id: str, record_id: str, kind: RecordKind
    ) -> Tuple[BankTransaction, Union[InvoiceRecord, PurchaseRecord]]:
        tx = self._transaction(tx_id)
        if kind == "invoice":
            inv = self.invoices.get_by_id(record_id)
            if inv is None:
                raise ValueError(f"invoice {record_id} not found")
            tx2, rec = reconcile_invoice(tx, inv)
            self.invoices.update_invoice(rec)
        elif kind == "purchase":
            pur = self.purchases.get_by_id(record_id)
            if pur is None:
                raise ValueError(f"purchase {record_id} not found")
            tx2, rec = reconcile_purchase(tx, pur)
            self.purchases.update_purchase(rec)
        else:
            raise ValueError(f"unknown record kind {kind!r}")
        self.banking.update_transaction(tx2)
        return tx2, rec

    def create_expense(self, tx_id: str, vendor_id: str, description: str) -> PurchaseRecord:
        tx = self._transaction(tx_id)
        vendor = self.parties.get_vendor(vendor_id)
        if vendor is None:
            raise ValueError(f"vendor {vendor_id} not found")
        tx2, purchase = create_expense_from_transaction(tx, vendor, description)
        self.purchases.add_purchase(purchase)
        self.banking.update_transaction(tx2)
        return purchase

    # ----------- reports / filing -----------
    def financial_summary(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> report_service.FinancialSummary:
        return report_service.financial_summary(
            report_service.filter_by_date(self.invoices.list_invoices(), start, end),
            report_service.filter_by_date(self.purchases.list_purchases(), start, end),
        )

    def inventory_summary(self) -> report_service.InventorySummary:
        return report_service.inventory_summary(self.catalog.list_products())

    def profit_and_loss(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> report_service.ProfitAndLoss:
        return report_service.profit_and_loss(
            report_service.filter_by_date(self.invoices.list_invoices(), start, end),
            report_service.filter_by_date(self.purchases.list_purchases(), start, end),
        )

    def monthly_returns(self, year: int, month: int) -> Tuple[filing_service.Gstr1, filing_service.Gstr3b]:
        return filing_service.monthly_returns(
            self.invoices.list_invoices(), self.purchases.list_purchases(), year, month
        )

    # ----------- documents -----------
    def documents(self) -> DocumentService:
        return DocumentService(self.settings.load(), self.settings.pdf_config())

    def export_pdf(self, record: Union[InvoiceRecord, QuotationRecord, PurchaseRecord], kind: DocumentKind) -> str:
        return self.documents().export_pdf(record, kind, self.data_dir / "exports")
