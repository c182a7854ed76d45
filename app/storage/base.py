from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.core.config import get_settings
from app.services.account_engine import CustomerAccount


@dataclass(frozen=True, slots=True)
class StoredAccount:
    account: CustomerAccount
    version: int


class WriteConflict(Exception):
    """The record changed (or was created) since it was read."""

    def __init__(self, customer_id: str, expected_version: int | None):
        self.customer_id = customer_id
        self.expected_version = expected_version
        super().__init__(f"write conflict for {customer_id} at version {expected_version}")


class CustomerStore(ABC):
    @abstractmethod
    async def find_by_customer_id(self, customer_id: str) -> StoredAccount | None:
        """Return the account and its version, or None."""
        ...

    @abstractmethod
    async def put(self, account: CustomerAccount, expected_version: int | None) -> int:
        """Create (expected_version None) or replace the record; return the new version.

        Raises WriteConflict when the stored version differs from expected_version.
        """
        ...


def get_store(backend: str | None = None) -> CustomerStore:
    backend = backend or get_settings().store_backend
    if backend == "memory":
        from app.storage.memory import MemoryCustomerStore
        return MemoryCustomerStore()
    from app.storage.mongo import MongoCustomerStore
    return MongoCustomerStore()
