import bcrypt
import pytest
from fastapi.testclient import TestClient

from eduportal.config import Settings
from eduportal.main import create_app
from eduportal.services.container import Services, build_services
from eduportal.services.store import MemoryStore
from eduportal.services.sql_store import SqlStore
from tests.helpers import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    GATEWAY_KEY_ID,
    GATEWAY_SECRET,
    FrozenClock,
    school_payload,
)


@pytest.fixture(scope="session")
def admin_password_hash() -> str:
    # Low cost factor keeps the suite fast.
    return bcrypt.hashpw(ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode(
        "utf-8"
    )


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def settings(admin_password_hash: str) -> Settings:
    return Settings(
        environment="test",
        store_backend="memory",
        razorpay_key_id=GATEWAY_KEY_ID,
        razorpay_key_secret=GATEWAY_SECRET,
        payment_strict_mode=True,
        admin_email=ADMIN_EMAIL,
        admin_name="Test Admin",
        admin_password="",
        admin_password_hash=admin_password_hash,
        rate_limit_requests=1000,
        rate_limit_window_seconds=60,
        trusted_proxies="",
        cors_origins="",
    )


@pytest.fixture()
def services(settings: Settings, clock: FrozenClock) -> Services:
    return build_services(settings, clock=clock)


@pytest.fixture(params=["memory", "sql"])
def store(request: pytest.FixtureRequest, clock: FrozenClock):
    if request.param == "memory":
        backend = MemoryStore(clock=clock)
    else:
        backend = SqlStore("sqlite+pysqlite:///:memory:", clock=clock)
    yield backend
    backend.close()


@pytest.fixture()
def app(settings: Settings, clock: FrozenClock):
    return create_app(settings, clock=clock)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def admin_token(client: TestClient) -> str:
    resp = client.post(
        "/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


@pytest.fixture()
def admin_headers(admin_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture()
def school(client: TestClient) -> dict:
    resp = client.post("/api/schools/register", json=school_payload())
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture()
def subscription(client: TestClient, school: dict) -> dict:
    resp = client.post(
        "/api/subscriptions/create",
        json={
            "schoolId": school["id"],
            "productType": "parikshanai-questionbank",
            "studentCount": 500,
            "contractYears": 1,
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()

