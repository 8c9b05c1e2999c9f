from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, Optional, Union

from gstbook.models.banking import BankTransaction
from gstbook.services.reconciliation_service import unreconciled
from gstbook.storage.repo import JsonRepository, load_models


class BankingService:
    def __init__(self, path: Union[str, Path]):
        self.repo = JsonRepository(path, entity_name="bank transaction", key="id")

    def list_transactions(self) -> List[BankTransaction]:
        return load_models(self.repo, BankTransaction)

    def list_unreconciled(self) -> List[BankTransaction]:
        return unreconciled(self.list_transactions())

    def get_by_id(self, tx_id: str) -> Optional[BankTransaction]:
        d = self.repo.get_by_id(tx_id)
        return BankTransaction.model_validate(d) if d else None

    def add_many(self, txs: Iterable[BankTransaction]) -> None:
        # statement lines are appended in file order
        self.repo.upsert_many(txs)

    def update_transaction(self, tx: BankTransaction) -> BankTransaction:
        self.repo.update(tx)
        return tx
