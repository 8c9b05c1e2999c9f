# gstbook/services/document_service.py
from __future__ import annotations
import logging
import os
import re
from pathlib import Path
from shutil import which
from typing import Any, Dict, Iterable, List, Literal, Optional, Union

import pdfkit  # wkhtmltopdf backend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from gstbook.models.invoice import InvoiceRecord
from gstbook.models.purchase import PurchaseRecord
from gstbook.models.quote import QuotationRecord
from gstbook.models.settings import AppSettings
from gstbook.services.tax_service import item_amounts, split_tax_heads

log = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates" / "pdf"
STYLESHEET = TEMPLATES_DIR / "stylesheet.css"

DocumentKind = Literal["invoice", "quotation", "proforma", "challan", "purchase"]
Record = Union[InvoiceRecord, QuotationRecord, PurchaseRecord]

TITLES: Dict[str, str] = {
    "invoice": "Tax Invoice",
    "quotation": "Quotation",
    "proforma": "Proforma Invoice",
    "challan": "Delivery Challan",
    "purchase": "Purchase Bill",
}

WKHTMLTOPDF_ENV = ("WKHTMLTOPDF", "WKHTMLTOPDF_CMD")
PDFKIT_OPTIONS = {"enable-local-file-access": None, "quiet": "", "encoding": "UTF-8", "page-size": "A4"}

_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|\r\n\t]')

# ---------- formats ----------
def money(amount: float, symbol: str = "₹") -> str:
    return f"{symbol}{amount:,.2f}"

def _slug(text: str) -> str:
    cleaned = " ".join(_UNSAFE_FILENAME.sub("_", text or "").split())
    return cleaned or "details"

def document_number(record: Record) -> str:
    if isinstance(record, InvoiceRecord):
        return record.invoice_number
    if isinstance(record, QuotationRecord):
        return record.quotation_number
    return record.bill_number

# ---------- PDF backends ----------
def _normalize_exe(raw: str) -> str:
    """Strip quotes, undo escaped drive colons ('C\\:\\wk' -> 'C:\\wk')."""
    cleaned = (raw or "").strip().strip("\"'").replace("\\:", ":")
    return os.path.normpath(cleaned) if cleaned else ""

def _candidates(pdf_config: Optional[Dict[str, Any]]) -> Iterable[str]:
    for name in WKHTMLTOPDF_ENV:
        yield os.environ.get(name, "")
    yield (pdf_config or {}).get("wkhtmltopdf_path") or ""

def find_wkhtmltopdf(pdf_config: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """
    Locate wkhtmltopdf:
    - env (WKHTMLTOPDF, WKHTMLTOPDF_CMD)
    - settings.json -> pdf.wkhtmltopdf_path
    - the PATH
    """
    for raw in _candidates(pdf_config):
        exe = _normalize_exe(raw)
        if exe and Path(exe).is_file():
            return exe
    on_path = which("wkhtmltopdf")
    return _normalize_exe(on_path) if on_path else None

def _pdf_with_wkhtmltopdf(html: str, out_path: Path, exe: str) -> None:
    pdfkit.from_string(
        html,
        str(out_path),
        options=PDFKIT_OPTIONS,
        configuration=pdfkit.configuration(wkhtmltopdf=exe),
        css=str(STYLESHEET),
    )

def _pdf_with_weasyprint(html: str, out_path: Path) -> None:
    try:
        from weasyprint import CSS, HTML
    except ImportError as e:
        raise RuntimeError(
            "Cannot write PDF: wkhtmltopdf was not found and WeasyPrint is not installed "
            f"(pip install weasyprint, or set WKHTMLTOPDF). Details: {e}"
        ) from e
    sheets = [CSS(filename=str(STYLESHEET))] if STYLESHEET.exists() else None
    HTML(string=html, base_url=str(TEMPLATES_DIR)).write_pdf(str(out_path), stylesheets=sheets)

# ---------- Service ----------
class DocumentService:
    def __init__(self, settings: Optional[AppSettings] = None, pdf_config: Optional[Dict[str, Any]] = None):
        self.settings = settings or AppSettings()
        self.pdf_config = pdf_config or {}
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def _context(self, record: Record, kind: DocumentKind) -> Dict[str, Any]:
        sym = self.settings.currency_symbol
        is_purchase = isinstance(record, PurchaseRecord)
        party = record.vendor if is_purchase else record.client

        lines: List[Dict[str, Any]] = []
        for idx, it in enumerate(record.items, start=1):
            if not it.is_billable():
                continue
            net, tax = item_amounts(it, record.price_type)
            lines.append({
                "no": idx,
                "description": it.description,
                "hsn": it.hsn,
                "qty": f"{it.quantity:g}",
                "price": money(it.unit_price, sym),
                "rate": f"{it.gst_rate:g}%",
                "amount": money(net, sym),
            })

        calc = record.calculation_result
        tax_rows = []
        for bd in calc.gst_breakdown:
            heads = split_tax_heads(bd, record.transaction_type)
            tax_rows.append({
                "rate": f"{bd.rate:g}%",
                "taxable": money(bd.taxable_amount, sym),
                "cgst": money(heads.cgst, sym),
                "sgst": money(heads.sgst, sym),
                "igst": money(heads.igst, sym),
            })

        custom = []
        values = getattr(record, "custom_field_values", None) or {}
        for cf in self.settings.custom_fields:
            if cf.enabled and values.get(cf.id):
                custom.append({"label": cf.label, "value": values[cf.id]})

        business = None if is_purchase else record.business
        return {
            "title": TITLES[kind],
            "number": document_number(record),
            "date": record.issue_date.strftime("%d/%m/%Y"),
            "business": business,
            "party": party,
            "party_label": "Vendor" if is_purchase else "Bill To",
            "inter_state": record.transaction_type == "INTER_STATE",
            "inclusive": record.price_type == "INCLUSIVE",
            "lines": lines,
            "tax_rows": tax_rows,
            "net": money(calc.total_net_amount, sym),
            "tax": money(calc.total_gst_amount, sym),
            "total": money(calc.grand_total, sym),
            "logistics": getattr(record, "logistics", None) if kind in ("invoice", "challan") else None,
            "payment_link": getattr(record, "payment_link", None) if kind == "invoice" else None,
            "custom_fields": custom,
            "accent": self.settings.accent_color,
            "modern": self.settings.template == "MODERN",
        }

    def render_html(self, record: Record, kind: DocumentKind = "invoice") -> str:
        if kind not in TITLES:
            raise ValueError(f"unknown document kind {kind!r}")
        tpl = self.env.get_template("document.html")
        return tpl.render(**self._context(record, kind))

    def filename(self, record: Record, kind: DocumentKind) -> str:
        party = record.vendor if isinstance(record, PurchaseRecord) else record.client
        return f"{TITLES[kind].replace(' ', '')}-{_slug(document_number(record))}-{_slug(party.name)}.pdf"

    def export_pdf(self, record: Record, kind: DocumentKind, out_dir: Union[str, Path]) -> str:
        """Render and write `<out_dir>/<filename>`; wkhtmltopdf when found, else WeasyPrint."""
        html = self.render_html(record, kind)
        target = Path(out_dir)
        target.mkdir(parents=True, exist_ok=True)
        out_path = target / self.filename(record, kind)

        exe = find_wkhtmltopdf(self.pdf_config)
        if exe:
            try:
                _pdf_with_wkhtmltopdf(html, out_path, exe)
                return str(out_path)
            except OSError as e:
                log.warning("wkhtmltopdf failed for %s (%s), trying WeasyPrint", out_path.name, e)
        _pdf_with_weasyprint(html, out_path)
        return str(out_path)
