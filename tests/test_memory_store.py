import pytest

from app.services.account_engine import CustomerAccount
from app.storage.base import WriteConflict

pytestmark = pytest.mark.asyncio


async def test_find_missing_returns_none(store):
    assert await store.find_by_customer_id("nobody") is None


async def test_create_then_replace_bumps_version(store):
    acc = CustomerAccount(customer_id="C1", credit=0, limit=500)
    assert await store.put(acc, None) == 1
    stored = await store.find_by_customer_id("C1")
    assert stored.account == acc
    assert stored.version == 1

    updated = CustomerAccount(customer_id="C1", credit=100, limit=500)
    assert await store.put(updated, 1) == 2
    assert (await store.find_by_customer_id("C1")).account == updated


async def test_second_create_conflicts(store):
    await store.put(CustomerAccount(customer_id="C1", credit=0, limit=500), None)
    with pytest.raises(WriteConflict):
        await store.put(CustomerAccount(customer_id="C1", credit=0, limit=900), None)
    assert (await store.find_by_customer_id("C1")).account.limit == 500


async def test_stale_version_conflicts(store):
    await store.put(CustomerAccount(customer_id="C1", credit=0, limit=500), None)
    await store.put(CustomerAccount(customer_id="C1", credit=100, limit=500), 1)
    with pytest.raises(WriteConflict) as exc_info:
        await store.put(CustomerAccount(customer_id="C1", credit=200, limit=500), 1)
    assert exc_info.value.expected_version == 1
    stored = await store.find_by_customer_id("C1")
    assert stored.account.credit == 100
    assert stored.version == 2


async def test_replace_of_missing_record_conflicts(store):
    with pytest.raises(WriteConflict):
        await store.put(CustomerAccount(customer_id="ghost", credit=0, limit=500), 3)
