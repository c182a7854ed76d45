"""MongoDB customer store on Beanie documents with version compare-and-swap."""

from beanie.operators import Set
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.exceptions import StoreUnavailableError
from app.core.logging import get_logger
from app.models.customer import Customer
from app.services.account_engine import CustomerAccount
from app.storage.base import CustomerStore, StoredAccount, WriteConflict

log = get_logger(__name__)


class MongoCustomerStore(CustomerStore):
    async def find_by_customer_id(self, customer_id: str) -> StoredAccount | None:
        try:
            doc = await Customer.find_one(Customer.customer_id == customer_id)
        except PyMongoError as exc:
            log.error("store_read_failed", customer_id=customer_id, error=str(exc))
            raise StoreUnavailableError() from exc
        if doc is None:
            return None
        return StoredAccount(
            account=CustomerAccount(customer_id=doc.customer_id, credit=doc.credit, limit=doc.limit),
            version=doc.version,
        )

    async def put(self, account: CustomerAccount, expected_version: int | None) -> int:
        try:
            if expected_version is None:
                return await self._insert(account)
            return await self._replace(account, expected_version)
        except PyMongoError as exc:
            log.error("store_write_failed", customer_id=account.customer_id, error=str(exc))
            raise StoreUnavailableError() from exc

    async def _insert(self, account: CustomerAccount) -> int:
        doc = Customer(
            customer_id=account.customer_id,
            credit=account.credit,
            limit=account.limit,
            version=1,
        )
        try:
            await doc.insert()
        except DuplicateKeyError as exc:
            raise WriteConflict(account.customer_id, None) from exc
        return doc.version

    async def _replace(self, account: CustomerAccount, expected_version: int) -> int:
        new_version = expected_version + 1
        result = await Customer.find_one(
            Customer.customer_id == account.customer_id,
            Customer.version == expected_version,
        ).update(
            Set({
                Customer.credit: account.credit,
                Customer.limit: account.limit,
                Customer.version: new_version,
            })
        )
        if result is None or result.matched_count == 0:
            raise WriteConflict(account.customer_id, expected_version)
        return new_version
