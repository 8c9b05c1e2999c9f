"""
Recurring billing.

`advance_profiles` is the catch-up pass run once when the books are opened:
every ACTIVE profile whose next due date is today or earlier gets one invoice
per missed cycle, tracked stock is decremented for each of them, and the
profile moves forward by its frequency. Nothing passed in is mutated; new
snapshots come back in a `SchedulerResult`.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field, ValidationError

from gstbook.models.common import PriceType, TransactionType
from gstbook.models.invoice import InvoiceRecord
from gstbook.models.item import LineItem
from gstbook.models.party import BusinessDetails, ClientDetails
from gstbook.models.product import Product
from gstbook.models.recurring import BillingFrequency, RecurringProfile
from gstbook.models.settings import AppSettings
from gstbook.services import stock_service
from gstbook.services.record_builder import build_invoice, make_payment_link
from gstbook.services.tax_service import calculate
from gstbook.storage.repo import JsonRepository

log = logging.getLogger(__name__)

FREQUENCY_STEPS: Dict[str, relativedelta] = {
    "MONTHLY": relativedelta(months=1),
    "QUARTERLY": relativedelta(months=3),
    "YEARLY": relativedelta(years=1),
}


def next_due_date(current: date, frequency: str) -> Optional[date]:
    """
    Step the month (or year), then re-apply the day-of-month: a day the
    target month does not have rolls over into the next one, so Jan 31 +
    1 month is Mar 2 (2024) and Feb 29 + 1 year is Mar 1. None for an
    unknown frequency.
    """
    step = FREQUENCY_STEPS.get(frequency)
    if step is None:
        return None
    first = current.replace(day=1) + step
    return first + timedelta(days=current.day - 1)


def _as_day(reference: Union[date, datetime, None]) -> date:
    if reference is None:
        return date.today()
    if isinstance(reference, datetime):
        return reference.date()
    return reference


class SchedulerResult(BaseModel):
    updated_profiles: List[RecurringProfile] = Field(default_factory=list)
    generated_invoices: List[InvoiceRecord] = Field(default_factory=list)  # oldest first
    products: List[Product] = Field(default_factory=list)
    stock_deltas: Dict[str, float] = Field(default_factory=dict)
    invoice_counter: int = 0


def advance_profiles(
    profiles: Iterable[RecurringProfile],
    products: Iterable[Product],
    business: BusinessDetails,
    invoice_counter: int,
    reference_date: Union[date, datetime, None] = None,
    settings: Optional[AppSettings] = None,
) -> SchedulerResult:
    """
    Catch every active profile up to `reference_date` (today by default).

    A cycle due exactly on the reference day is generated. When catch-up
    reaches a due date past the profile's end date, the profile is PAUSED and
    that cycle is not billed. The invoice counter is shared with manual
    invoicing; the final value is returned for the caller to persist.
    """
    today = _as_day(reference_date)
    stock = [p.model_copy(deep=True) for p in products]
    counter = invoice_counter
    out_profiles: List[RecurringProfile] = []
    invoices: List[InvoiceRecord] = []
    deltas: Dict[str, float] = {}

    for original in profiles:
        profile = original.model_copy(deep=True)
        out_profiles.append(profile)
        if profile.status != "ACTIVE":
            continue
        if profile.frequency not in FREQUENCY_STEPS:
            # would never advance: bail out instead of looping forever
            if profile.next_due_date <= today:
                log.warning(
                    "Recurring profile %s has unknown frequency %r, not billed",
                    profile.id, profile.frequency,
                )
            continue

        while profile.next_due_date <= today:
            if profile.end_date is not None and profile.next_due_date > profile.end_date:
                profile.status = "PAUSED"
                log.info("Recurring profile %s passed its end date %s, paused", profile.id, profile.end_date)
                break

            calc = calculate(profile.items, profile.price_type)
            invoice, counter = build_invoice(
                profile.items,
                profile.client,
                business,
                profile.price_type,
                profile.transaction_type,
                calc,
                counter,
                issue_date=profile.next_due_date,
                payment_link=make_payment_link(settings),
                fresh_item_ids=True,
            )
            invoices.append(invoice)

            cycle = stock_service.stock_deltas(stock, invoice.items, stock_service.SALE)
            stock = stock_service.apply_deltas(stock, cycle)
            for pid, qty in cycle.items():
                deltas[pid] = deltas.get(pid, 0) + qty

            profile.last_generated_date = profile.next_due_date
            profile.next_due_date = next_due_date(profile.next_due_date, profile.frequency)

    if invoices:
        log.info("Recurring catch-up generated %d invoice(s) up to %s", len(invoices), today)

    return SchedulerResult(
        updated_profiles=out_profiles,
        generated_invoices=invoices,
        products=stock,
        stock_deltas=deltas,
        invoice_counter=counter,
    )


def estimate_cycle_total(items: Iterable[LineItem], price_type: PriceType) -> float:
    """Grand total one cycle of the template would bill."""
    return calculate(items, price_type).grand_total


class RecurringService:
    def __init__(self, path: Union[str, Path]):
        self.repo = JsonRepository(path, entity_name="recurring profile", key="id")

    def list_profiles(self) -> List[RecurringProfile]:
        out: List[RecurringProfile] = []
        for d in self.repo.list_all():
            try:
                out.append(RecurringProfile(**d))
            except ValidationError as e:
                log.warning("Skipping invalid recurring profile %s: %s", d.get("id"), e.error_count())
        return out

    def get_by_id(self, profile_id: str) -> Optional[RecurringProfile]:
        d = self.repo.get_by_id(profile_id)
        return RecurringProfile(**d) if d else None

    def create_profile(
        self,
        client: ClientDetails,
        items: List[LineItem],
        start_date: date,
        *,
        frequency: BillingFrequency = "MONTHLY",
        end_date: Optional[date] = None,
        next_due_date: Optional[date] = None,
        price_type: PriceType = "EXCLUSIVE",
        transaction_type: TransactionType = "INTRA_STATE",
    ) -> RecurringProfile:
        if not client.id:
            raise ValueError("A recurring profile needs a saved client")
        profile = RecurringProfile(
            client=client.model_copy(deep=True),
            items=[it.model_copy(deep=True) for it in items],
            frequency=frequency,
            start_date=start_date,
            end_date=end_date,
            next_due_date=next_due_date or start_date,  # first cycle bills on the start date
            price_type=price_type,
            transaction_type=transaction_type,
        )
        self.repo.add(profile)
        return profile

    def update_profile(self, profile: RecurringProfile) -> RecurringProfile:
        self.repo.update(profile)
        return profile

    def toggle_status(self, profile_id: str) -> RecurringProfile:
        profile = self.get_by_id(profile_id)
        if profile is None:
            raise ValueError(f"recurring profile {profile_id} not found")
        profile.status = "PAUSED" if profile.status == "ACTIVE" else "ACTIVE"
        self.repo.update(profile)
        return profile

    def delete_profile(self, profile_id: str) -> bool:
        return self.repo.delete(profile_id)

    def save_all(self, profiles: Iterable[RecurringProfile]) -> None:
        # upsert so rows that failed validation on load stay on disk
        self.repo.upsert_many(profiles)
