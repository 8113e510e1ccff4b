import pytest
from fastapi.testclient import TestClient

from grafica_crm.core.config import Settings
from grafica_crm.core.security import create_access_token
from grafica_crm.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        env="test",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        supabase_jwt_secret="test-secret",
        backend_cors_origins="",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def _headers(settings, user_id):
    token = create_access_token(settings, subject=user_id, email=f"{user_id}@grafica.test")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(settings):
    return _headers(settings, "user-1")


@pytest.fixture
def other_headers(settings):
    return _headers(settings, "user-2")


@pytest.fixture
def customer_id(client, auth_headers):
    r = client.post("/api/customers", json={"name": "Ana", "phone": "11999990000"}, headers=auth_headers)
    assert r.status_code == 200
    return r.json()["id"]


def _order_payload(customer_id, **overrides):
    payload = {
        "customer_id": customer_id,
        "service_type": "Cartão de visita",
        "description": "Couchê 300g",
        "quantity": 1,
        "unit_price": 10.0,
        "total_price": 10.0,
        "order_date": "2024-03-10",
        "delivery_date": "2024-03-15",
        "status": "Orçamento",
        "notes": "",
        "images": [],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def order_payload():
    return _order_payload
