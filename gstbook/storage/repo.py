from __future__ import annotations

import json
import logging
import math
import shutil
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Optional, Type, TypeVar, Union
from uuid import uuid4

from pydantic import BaseModel, ValidationError

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Union[BaseModel, Mapping[str, Any]])
Row = Dict[str, Any]


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    return str(o)


def _scrub_nan(o: Any) -> Any:
    # NaN is not valid JSON; "unset" numbers are stored as null
    if isinstance(o, float) and math.isnan(o):
        return None
    if isinstance(o, dict):
        return {k: _scrub_nan(v) for k, v in o.items()}
    if isinstance(o, list):
        return [_scrub_nan(v) for v in o]
    return o


def _encode(data: Any) -> str:
    return json.dumps(_scrub_nan(data), ensure_ascii=False, indent=2, default=_json_default)


def load_json(path: Union[str, Path]) -> Any:
    src = Path(path)
    if not src.is_file():
        return None
    try:
        return json.loads(src.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log.warning("Unreadable JSON file %s (%s)", src, e)
        return None


def dump_json(path: Union[str, Path], data: Any) -> None:
    dst = Path(path)
    dst.parent.mkdir(parents=True, exist_ok=True)
    dst.write_text(_encode(data), encoding="utf-8")


class JsonRepository(Generic[T]):
    """
    One JSON list file per entity, rows addressed by `key`.

    Row order is kept as written (history files are newest first). A write
    that would not change the file is dropped; otherwise the previous
    version is kept as `<name>.<timestamp>.bak.json`, at most `backup_keep`
    of them. An unparseable file is copied to `<name>.corrupt.json` and read
    as empty.
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        entity_name: str = "entity",
        key: str = "id",
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self.entity_name = entity_name
        self.key = key
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))
        self._lock = threading.Lock()

        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        if not self.filepath.exists():
            self._flush([])

    # ---------------- file ---------------- #

    def _rows(self) -> List[Row]:
        try:
            text = self.filepath.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            aside = self.filepath.with_suffix(".corrupt.json")
            log.warning("Corrupt %s file %s, copied to %s", self.entity_name, self.filepath, aside)
            try:
                shutil.copy2(self.filepath, aside)
            except OSError as e:
                log.warning("Could not copy corrupt file aside: %s", e)
            return []
        return data if isinstance(data, list) else []

    def _backups(self) -> List[Path]:
        return sorted(self.filepath.parent.glob(f"{self.filepath.stem}.*.bak.json"))

    def _keep_backup(self) -> None:
        if not (self.backup_enabled and self.backup_keep and self.filepath.exists()):
            return
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        shutil.copy2(self.filepath, self.filepath.with_suffix(f".{stamp}.bak.json"))
        stale = self._backups()[: -self.backup_keep]
        for old in stale:
            old.unlink(missing_ok=True)

    def _flush(self, rows: Iterable[Row]) -> None:
        text = _encode(list(rows))
        with self._lock:
            try:
                if self.filepath.read_text(encoding="utf-8") == text:
                    return
            except OSError:
                pass  # missing file: write it
            self._keep_backup()
            self.filepath.write_text(text, encoding="utf-8")

    # ---------------- rows ---------------- #

    @staticmethod
    def _to_dict(item: T) -> Row:
        if isinstance(item, BaseModel):
            return item.model_dump(mode="json")
        if isinstance(item, Mapping):
            return dict(item)
        return dict(vars(item))

    def _keyed(self, item: T) -> Row:
        row = self._to_dict(item)
        if not row.get(self.key):
            row[self.key] = uuid4().hex
        return row

    def _id(self, row: Mapping[str, Any]) -> str:
        return str(row.get(self.key))

    def _position(self, rows: List[Row], obj_id: Any) -> Optional[int]:
        wanted = str(obj_id)
        return next((i for i, r in enumerate(rows) if self._id(r) == wanted), None)

    def _reject_duplicates(self, rows: List[Row], new_rows: List[Row]) -> None:
        taken = {self._id(r) for r in rows}
        for r in new_rows:
            if self._id(r) in taken:
                raise ValueError(f"{self.entity_name} with {self.key}={r[self.key]} already exists")
            taken.add(self._id(r))

    # ---------------- read ---------------- #

    def list_all(self) -> List[Row]:
        return self._rows()

    def get_by_id(self, obj_id: Any) -> Optional[Row]:
        rows = self._rows()
        i = self._position(rows, obj_id)
        return None if i is None else rows[i]

    def find_one(self, predicate: Callable[[Row], bool]) -> Optional[Row]:
        return next((r for r in self._rows() if predicate(r)), None)

    # ---------------- write ---------------- #

    def add(self, item: T) -> Row:
        row = self._keyed(item)
        rows = self._rows()
        self._reject_duplicates(rows, [row])
        self._flush(rows + [row])
        return row

    def prepend_many(self, items: Iterable[T]) -> List[Row]:
        """Put new rows at the head of the file, in the order given."""
        new_rows = [self._keyed(it) for it in items]
        if not new_rows:
            return []
        rows = self._rows()
        self._reject_duplicates(rows, new_rows)
        self._flush(new_rows + rows)
        return new_rows

    def update(self, item: T) -> Row:
        """Merge the given fields into the stored row; unknown keys on disk are kept."""
        patch = self._to_dict(item)
        obj_id = patch.get(self.key)
        if not obj_id:
            raise ValueError(f"Cannot update {self.entity_name} without '{self.key}'")
        rows = self._rows()
        i = self._position(rows, obj_id)
        if i is None:
            raise ValueError(f"{self.entity_name} with {self.key}={obj_id} not found")
        rows[i] = {**rows[i], **patch}
        self._flush(rows)
        return rows[i]

    def upsert(self, item: T) -> Row:
        row = self._to_dict(item)
        if row.get(self.key) and self.get_by_id(row[self.key]) is not None:
            return self.update(row)
        return self.add(row)

    def upsert_many(self, items: Iterable[T]) -> None:
        """Merge known rows in place and append new ones, in a single write."""
        rows = self._rows()
        where = {self._id(r): i for i, r in enumerate(rows)}
        for it in items:
            row = self._keyed(it)
            i = where.get(self._id(row))
            if i is None:
                where[self._id(row)] = len(rows)
                rows.append(row)
            else:
                rows[i] = {**rows[i], **row}
        self._flush(rows)

    def delete(self, obj_id: Any) -> bool:
        rows = self._rows()
        i = self._position(rows, obj_id)
        if i is None:
            return False
        del rows[i]
        self._flush(rows)
        return True


M = TypeVar("M", bound=BaseModel)


def load_models(repo: JsonRepository, model: Type[M]) -> List[M]:
    """Hydrate every row; invalid rows are logged and skipped, never rewritten."""
    out: List[M] = []
    for row in repo.list_all():
        try:
            out.append(model.model_validate(row))
        except ValidationError as e:
            log.warning(
                "Skipping invalid %s %s (%d error(s))", repo.entity_name, row.get(repo.key), e.error_count()
            )
    return out
