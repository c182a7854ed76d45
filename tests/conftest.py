import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Use test DB
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "customer_service_test")
os.environ.setdefault("STORE_BACKEND", "memory")


@pytest.fixture
def store():
    from app.storage.memory import MemoryCustomerStore
    return MemoryCustomerStore()


@pytest.fixture
def service(store):
    from app.services.accounts import AccountService
    return AccountService(store, timeout_seconds=1.0, max_write_attempts=10)


@pytest_asyncio.fixture
async def client(store) -> AsyncGenerator[AsyncClient, None]:
    from app.main import create_app
    app = create_app(store=store)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
