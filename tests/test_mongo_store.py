"""Mongo store against a live MongoDB; skipped when none is reachable."""

import asyncio

import pytest
import pytest_asyncio

from app.services.account_engine import CustomerAccount
from app.storage.base import WriteConflict

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def mongo_store():
    from beanie import init_beanie
    from motor.motor_asyncio import AsyncIOMotorClient
    from pymongo.errors import PyMongoError

    from app.core.config import get_settings
    from app.db.init import DOCUMENT_MODELS
    from app.models.customer import Customer
    from app.storage.mongo import MongoCustomerStore

    settings = get_settings()
    client = AsyncIOMotorClient(settings.mongodb_uri, serverSelectionTimeoutMS=500)
    try:
        await client.admin.command("ping")
    except PyMongoError:
        client.close()
        pytest.skip("MongoDB not available")
    await init_beanie(database=client[settings.mongodb_db_name], document_models=DOCUMENT_MODELS)
    await Customer.delete_all()
    yield MongoCustomerStore()
    await Customer.delete_all()
    client.close()


async def test_insert_find_and_replace(mongo_store):
    acc = CustomerAccount(customer_id="M1", credit=0, limit=500)
    assert await mongo_store.put(acc, None) == 1
    stored = await mongo_store.find_by_customer_id("M1")
    assert stored.account == acc
    assert stored.version == 1

    assert await mongo_store.put(CustomerAccount(customer_id="M1", credit=200, limit=500), 1) == 2
    stored = await mongo_store.find_by_customer_id("M1")
    assert stored.account.credit == 200
    assert stored.version == 2


async def test_duplicate_create_and_stale_version_conflict(mongo_store):
    await mongo_store.put(CustomerAccount(customer_id="M2", credit=0, limit=500), None)
    with pytest.raises(WriteConflict):
        await mongo_store.put(CustomerAccount(customer_id="M2", credit=0, limit=700), None)
    await mongo_store.put(CustomerAccount(customer_id="M2", credit=100, limit=500), 1)
    with pytest.raises(WriteConflict):
        await mongo_store.put(CustomerAccount(customer_id="M2", credit=300, limit=500), 1)
    stored = await mongo_store.find_by_customer_id("M2")
    assert stored.account.credit == 100


async def test_concurrent_credit_requests(mongo_store):
    from app.services.accounts import AccountService

    service = AccountService(mongo_store, timeout_seconds=5.0)
    await service.set_limit("M3", 250)
    decisions = await asyncio.gather(*(service.request_credit("M3", 1) for _ in range(10)))
    assert sum(1 for d in decisions if d.accepted) == 2
    assert (await service.get_account("M3")).credit == 200
