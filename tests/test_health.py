from fastapi.testclient import TestClient

from app.main import create_app
from app.storage.memory import MemoryCustomerStore


def test_health():
    with TestClient(create_app(store=MemoryCustomerStore())) as c:
        r = c.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}


def test_index_banner_and_request_id():
    with TestClient(create_app(store=MemoryCustomerStore())) as c:
        r = c.get("/", headers={"X-Request-ID": "req-123"})
        assert r.status_code == 200
        assert r.text == "Customer service."
        assert r.headers["X-Request-ID"] == "req-123"


def test_startup_with_memory_backend_builds_service():
    from app.core.config import Settings

    settings = Settings(STORE_BACKEND="memory")
    app = create_app(settings=settings)
    with TestClient(app) as c:
        r = c.post("/api/v1/customer/limit", json={"customer_id": "boot", "limit": 100})
        assert r.status_code == 200
        assert r.json() == {"customer_id": "boot", "credit": 0, "limit": 100}


def test_lifespan_keeps_injected_store():
    store = MemoryCustomerStore()
    app = create_app(store=store)
    with TestClient(app) as c:
        assert c.get("/health").status_code == 200
        assert app.state.account_service._store is store
    assert not hasattr(app.state, "mongo_client")
