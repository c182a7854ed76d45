"""In-process customer store with the same version semantics as the Mongo store."""

import asyncio

from app.services.account_engine import CustomerAccount
from app.storage.base import CustomerStore, StoredAccount, WriteConflict


class MemoryCustomerStore(CustomerStore):
    def __init__(self) -> None:
        self._records: dict[str, StoredAccount] = {}
        self._lock = asyncio.Lock()

    async def find_by_customer_id(self, customer_id: str) -> StoredAccount | None:
        async with self._lock:
            return self._records.get(customer_id)

    async def put(self, account: CustomerAccount, expected_version: int | None) -> int:
        async with self._lock:
            existing = self._records.get(account.customer_id)
            current_version = existing.version if existing else None
            if current_version != expected_version:
                raise WriteConflict(account.customer_id, expected_version)
            version = (current_version or 0) + 1
            self._records[account.customer_id] = StoredAccount(account=account, version=version)
            return version
