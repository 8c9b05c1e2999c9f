"""
Bank statement import.

Reads a CSV or Excel statement into plain row dicts, then turns the rows into
UNRECONCILED `BankTransaction`s. Column headers are matched case-insensitively:

- date:         Date
- description:  Description, Narration
- credit/debit: Credit, Debit

Rows without a date or a description, or with both amounts zero, are dropped.
Any other problem fails the whole import: nothing half-parsed is returned.
"""
from __future__ import annotations

import csv
import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from dateutil import parser as date_parser

from gstbook.models.banking import BankTransaction

log = logging.getLogger(__name__)

DATE_COLUMNS = ("date",)
DESCRIPTION_COLUMNS = ("description", "narration")
CREDIT_COLUMNS = ("credit",)
DEBIT_COLUMNS = ("debit",)


class StatementImportError(Exception):
    def __init__(self, message: str, row_number: Optional[int] = None):
        self.message = message
        self.row_number = row_number
        super().__init__(message if row_number is None else f"row {row_number}: {message}")


def _normalize_keys(row: Dict[Any, Any]) -> Dict[str, Any]:
    return {str(k).strip().lower(): v for k, v in row.items() if k is not None}


def _pick(row: Dict[str, Any], names: Iterable[str]) -> Any:
    for n in names:
        v = row.get(n)
        if v not in (None, ""):
            return v
    return None


def parse_amount(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    s = re.sub(r"[₹$€£,\s]", "", str(value))
    if not s:
        return 0.0
    try:
        return float(s)
    except ValueError as e:
        raise StatementImportError(f"not an amount: {value!r}") from e


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.parse(str(value).strip()).date()
    except (ValueError, OverflowError) as e:
        raise StatementImportError(f"not a date: {value!r}") from e


def parse_rows(rows: Iterable[Dict[Any, Any]]) -> List[BankTransaction]:
    out: List[BankTransaction] = []
    for n, raw in enumerate(rows, start=1):
        row = _normalize_keys(raw)
        when = _pick(row, DATE_COLUMNS)
        description = _pick(row, DESCRIPTION_COLUMNS)
        try:
            credit = parse_amount(_pick(row, CREDIT_COLUMNS))
            debit = parse_amount(_pick(row, DEBIT_COLUMNS))
            if not when or not description or (credit == 0 and debit == 0):
                continue
            tx_date = parse_date(when)
        except StatementImportError as e:
            raise StatementImportError(e.message, row_number=n) from e

        is_credit = credit > 0
        out.append(BankTransaction(
            date=tx_date,
            description=str(description),
            amount=abs(credit if is_credit else debit),
            type="CREDIT" if is_credit else "DEBIT",
        ))
    return out


def _read_csv(path: Path) -> List[Dict[str, Any]]:
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        return list(csv.DictReader(f))


def _read_xlsx(path: Path) -> List[Dict[str, Any]]:
    import openpyxl

    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            return []
        keys = [str(h).strip() if h is not None else None for h in header]
        return [dict(zip(keys, values)) for values in rows]
    finally:
        wb.close()


def read_statement(path: Union[str, Path]) -> List[BankTransaction]:
    p = Path(path)
    suffix = p.suffix.lower()
    try:
        if suffix == ".csv":
            rows = _read_csv(p)
        elif suffix in (".xlsx", ".xlsm"):
            rows = _read_xlsx(p)
        else:
            raise StatementImportError(f"unsupported statement format: {suffix or p.name}")
    except StatementImportError:
        raise
    except Exception as e:
        raise StatementImportError(
            f'Failed to read {p.name}. Expected columns like "Date", "Description", "Credit" and "Debit". ({e})'
        ) from e

    txs = parse_rows(rows)
    log.info("Parsed %d bank transaction(s) from %s", len(txs), p.name)
    return txs
