"""
Shared fixtures: an in-memory SQLite database, a scripted fake of the TI
backlog API served through httpx.MockTransport, and an HTTP client bound to
the FastAPI app with both wired in through dependency overrides.
"""
from __future__ import annotations

import json
import os
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

# Settings are read from the environment when src.api.main is imported.
os.environ.update(
    {
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "RUN_MIGRATIONS_ON_STARTUP": "false",
        "LOG_LEVEL": "WARNING",
        "TI_SERVER_URL": "https://ti.test",
        "TI_CLIENT_ID": "client-id",
        "TI_CLIENT_SECRET": "client-secret",
        "TI_CHECKOUT_PROFILE_ID": "profile-1",
        "TI_SHIP_TO": "ship-to-1",
        "TI_API_ENV": "development",
        "WEBHOOK_AUTH_USER": "ti-hook",
        "WEBHOOK_AUTH_PASS": "hook-secret",
    }
)

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.api.main import app  # noqa: E402
from src.clients.ti_backlog import TIBacklogClient  # noqa: E402
from src.core.deps import get_backlog_client  # noqa: E402
from src.core.settings import get_app_settings  # noqa: E402
from src.db import models  # noqa: E402,F401
from src.db.base import Base  # noqa: E402
from src.db.session import get_async_session  # noqa: E402

TI_SERVER = "https://ti.test"

Responder = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeTI:
    """
    Scripted TI backlog server.

    Routes are keyed by (method, path); a route maps to a (status, json) pair
    or to a callable producing the response. Token requests are counted
    separately from API requests.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Responder] = {}
        self.requests: List[httpx.Request] = []
        self.token_requests = 0
        self.expires_in = 3600

    def add(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self.routes[(method.upper(), path)] = (status, body)

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method.upper(), path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/oauth":
            self.token_requests += 1
            return httpx.Response(
                200,
                json={"access_token": f"token-{self.token_requests}", "expires_in": self.expires_in},
            )
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"errors": [{"code": "404", "message": "no such route"}]})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)

    def last_params(self) -> Dict[str, str]:
        return dict(self.requests[-1].url.params)

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def fake_ti() -> FakeTI:
    return FakeTI()


@pytest.fixture
async def backlog(fake_ti):
    client = TIBacklogClient.from_settings(get_app_settings(), transport=httpx.MockTransport(fake_ti.handler))
    yield client
    await client.aclose()


@pytest.fixture
async def client(session_maker, backlog):
    async def override_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_backlog_client] = lambda: backlog
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


def quotation_payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "date": "2024-05-02",
        "customer": "Acme Electronics",
        "components": [
            {"name": "LM358DR", "quantity": 100, "unit_price": 0.5, "k3_code": "K3-001"},
            {"name": "TPS7A4700RGWR", "quantity": 10, "unit_price": 2.25},
        ],
    }
    payload.update(overrides)
    return payload


def order_payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "date": "2024-05-10",
        "customer": "Acme Electronics",
        "purchase_order_number": "PO-1001",
        "quote_number": "Q-100",
        "components": [
            {
                "id": "c1",
                "name": "LM358DR",
                "quantity": 100,
                "ti_price": 0.12,
                "delivery_date": "2024-06-01",
                "k3_code": "K3-001",
            },
            {
                "id": "c2",
                "name": "TPS7A4700RGWR",
                "quantity": 10,
                "unit_price": 2.0,
                "delivery_date": "2024-06-15",
            },
        ],
    }
    payload.update(overrides)
    return payload


async def create_quotation(client: httpx.AsyncClient, **overrides: Any) -> Dict[str, Any]:
    resp = await client.post("/api/v1/quotations", json=quotation_payload(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_order(client: httpx.AsyncClient, **overrides: Any) -> Dict[str, Any]:
    resp = await client.post("/api/v1/orders", json=order_payload(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


def ti_order(
    order_number: str = "TI-5001",
    status: str = "Processing",
    line_items: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    return {
        "orderNumber": order_number,
        "orderStatus": status,
        "customerPurchaseOrderNumber": "PO-1001",
        "lineItems": line_items
        if line_items is not None
        else [
            {"tiPartNumber": "LM358DR", "tiLineItemNumber": 10, "status": "Open"},
            {"tiPartNumber": "TPS7A4700RGWR", "tiLineItemNumber": 20, "status": "Open"},
        ],
    }


async def submit_order(client: httpx.AsyncClient, fake_ti: FakeTI, **overrides: Any) -> Dict[str, Any]:
    order = await create_order(client, **overrides)
    fake_ti.add("POST", "/v2/backlog/orders/test", {"orders": [ti_order()]})
    resp = await client.post(f"/api/v1/orders/{order['id']}/submit")
    assert resp.status_code == 200, resp.text
    return resp.json()["order"]
