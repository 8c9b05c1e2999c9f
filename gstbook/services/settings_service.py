from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from gstbook.models.party import BusinessDetails
from gstbook.models.settings import AppSettings
from gstbook.storage.repo import dump_json, load_json

log = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[2]
DATA_DIR_ENV = "GSTBOOK_DATA_DIR"

INVOICE_SEQ = "invoice_seq"
QUOTATION_SEQ = "quotation_seq"


def resolve_data_dir(data_dir: Optional[Union[str, Path]] = None) -> Path:
    """Explicit argument, then $GSTBOOK_DATA_DIR, then <project>/data."""
    if data_dir:
        base = Path(data_dir)
    elif os.environ.get(DATA_DIR_ENV):
        base = Path(os.environ[DATA_DIR_ENV])
    else:
        base = ROOT_DIR / "data"
    base.mkdir(parents=True, exist_ok=True)
    return base


class SettingsService:
    """
    data/settings.json:
      - app settings (currency, payment gateway keys, template, custom fields)
      - "business": the seller details stamped on every document
      - "numbering": {"invoice_seq": n, "quotation_seq": m}, count of numbers issued
      - "pdf": {"wkhtmltopdf_path": ...}
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _raw(self) -> Dict[str, Any]:
        s = load_json(self.path)
        return s if isinstance(s, dict) else {}

    def _save_raw(self, s: Dict[str, Any]) -> None:
        dump_json(self.path, s)

    # ----------- settings -----------
    def load(self) -> AppSettings:
        s = self._raw()
        try:
            return AppSettings(**s)
        except ValidationError as e:
            log.warning("Invalid settings in %s, using defaults (%s)", self.path, e.error_count())
            return AppSettings()

    def save(self, settings: AppSettings) -> AppSettings:
        s = self._raw()
        s.update(settings.model_dump(mode="json"))
        self._save_raw(s)
        return settings

    def load_business(self) -> BusinessDetails:
        try:
            return BusinessDetails(**(self._raw().get("business") or {}))
        except ValidationError:
            log.warning("Invalid business details in %s", self.path)
            return BusinessDetails()

    def save_business(self, business: BusinessDetails) -> BusinessDetails:
        s = self._raw()
        s["business"] = business.model_dump(mode="json")
        self._save_raw(s)
        return business

    def pdf_config(self) -> Dict[str, Any]:
        s = self._raw()
        pdf = s.get("pdf")
        return pdf if isinstance(pdf, dict) else {}

    # ----------- numbering -----------
    def get_counter(self, name: str) -> int:
        numbering = self._raw().get("numbering") or {}
        try:
            return max(0, int(numbering.get(name, 0)))
        except (TypeError, ValueError):
            log.warning("Bad %s counter in %s, starting from 0", name, self.path)
            return 0

    def set_counter(self, name: str, value: int) -> None:
        s = self._raw()
        numbering = s.get("numbering") or {}
        numbering[name] = int(value)
        s["numbering"] = numbering
        self._save_raw(s)

    def invoice_counter(self) -> int:
        return self.get_counter(INVOICE_SEQ)

    def quotation_counter(self) -> int:
        return self.get_counter(QUOTATION_SEQ)
