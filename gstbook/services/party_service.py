from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Union

from gstbook.models.party import ClientDetails, Vendor
from gstbook.storage.repo import JsonRepository, load_models


class PartyService:
    """Address book: clients (buyers) and vendors (suppliers)."""

    def __init__(self, clients_path: Union[str, Path], vendors_path: Union[str, Path]):
        self.clients = JsonRepository(clients_path, entity_name="client", key="id")
        self.vendors = JsonRepository(vendors_path, entity_name="vendor", key="id")

    # ----------- clients -----------
    def list_clients(self) -> List[ClientDetails]:
        return load_models(self.clients, ClientDetails)

    def get_client(self, client_id: str) -> Optional[ClientDetails]:
        d = self.clients.get_by_id(client_id)
        return ClientDetails.model_validate(d) if d else None

    def save_client(self, client: ClientDetails) -> ClientDetails:
        if not client.name:
            raise ValueError("A client needs a name")
        self.clients.upsert(client)
        return client

    def delete_client(self, client_id: str) -> bool:
        # history keeps its own snapshot, nothing else to clean up
        return self.clients.delete(client_id)

    # ----------- vendors -----------
    def list_vendors(self) -> List[Vendor]:
        return load_models(self.vendors, Vendor)

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        d = self.vendors.get_by_id(vendor_id)
        return Vendor.model_validate(d) if d else None

    def save_vendor(self, vendor: Vendor) -> Vendor:
        if not vendor.name:
            raise ValueError("A vendor needs a name")
        self.vendors.upsert(vendor)
        return vendor

    def delete_vendor(self, vendor_id: str) -> bool:
        return self.vendors.delete(vendor_id)
