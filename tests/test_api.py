"""Tests for the FastAPI routes."""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from crosscart.api.main import (
    create_app,
    get_catalog_client,
    get_portrait_preparer,
    get_purchase_service,
    get_render_service,
)
from crosscart.catalog.models import ProductSummary
from crosscart.config.settings import Settings
from crosscart.imggen.compositor import LayerCompositor
from crosscart.imggen.data_url import encode_data_url
from crosscart.imggen.portrait import PortraitPreparer
from crosscart.purchase.agent_runtime import AgentResult, AgentSessionConfig
from crosscart.purchase.orchestrator import AgentOrchestrator
from crosscart.purchase.order_builder import PurchaseOrderBuilder
from crosscart.services.checkout import CheckoutService
from tests.helpers import FakeAgentRuntime, FakeImageClient, make_product


class FakeCatalog:
    def __init__(self, products: list[ProductSummary]) -> None:
        self.products = products
        self.queries: list[tuple[str, object]] = []

    async def search(self, query: str, limit: object = None) -> list[ProductSummary]:
        self.queries.append((query, limit))
        return self.products


@pytest.fixture
def app() -> FastAPI:
    return create_app(Settings(max_portrait_bytes=1024))


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _purchase_service(messages: list[AgentResult]) -> CheckoutService:
    orchestrator = AgentOrchestrator(
        FakeAgentRuntime(messages),
        AgentSessionConfig(namespace="locus", server_url="https://mcp.example.com/mcp"),
    )
    return CheckoutService(order_builder=PurchaseOrderBuilder(["X", "Y"]), orchestrator=orchestrator)


def test_health_returns_ok(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_search_returns_products_with_camel_case_fields(app: FastAPI, client: TestClient) -> None:
    catalog = FakeCatalog([make_product("p1", "Rash guard", image_url="https://cdn.example.com/p1.png")])
    app.dependency_overrides[get_catalog_client] = lambda: catalog

    response = client.post("/api/products/search", json={"query": "rash guard", "limit": 2})

    assert response.status_code == 200
    product = response.json()["products"][0]
    assert product["id"] == "p1"
    assert product["imageUrl"] == "https://cdn.example.com/p1.png"
    assert catalog.queries == [("rash guard", 2)]


def test_portrait_upload_returns_prepared_image(app: FastAPI, client: TestClient) -> None:
    image_client = FakeImageClient([b"prepared"])
    app.dependency_overrides[get_portrait_preparer] = lambda: PortraitPreparer(image_client)

    response = client.post(
        "/api/virtual-try-on/portrait",
        files={"portrait": ("me.jpg", b"selfie-bytes", "image/jpeg")},
    )

    assert response.status_code == 200
    assert response.json() == {"image": encode_data_url(b"prepared", "image/png")}
    assert image_client.calls[0]["images"][0].mime_type == "image/jpeg"


@pytest.mark.parametrize(
    "files",
    [
        {"portrait": ("notes.txt", b"hello", "text/plain")},
        {"portrait": ("big.png", b"x" * 2048, "image/png")},
    ],
)
def test_portrait_upload_rejects_invalid_files(app: FastAPI, client: TestClient, files: dict) -> None:
    image_client = FakeImageClient([])
    app.dependency_overrides[get_portrait_preparer] = lambda: PortraitPreparer(image_client)

    response = client.post("/api/virtual-try-on/portrait", files=files)

    assert response.status_code == 400
    assert "error" in response.json()
    assert image_client.calls == []


def test_render_composites_slots(app: FastAPI, client: TestClient) -> None:
    image_client = FakeImageClient([b"dressed"])
    app.dependency_overrides[get_render_service] = lambda: CheckoutService(compositor=LayerCompositor(image_client))

    response = client.post(
        "/api/outfits/render",
        json={
            "portrait": encode_data_url(b"portrait", "image/jpeg"),
            "slots": {"chest": {"dataUrl": encode_data_url(b"tee", "image/png")}, "legs": None},
            "seed": 5,
        },
    )

    assert response.status_code == 200
    assert response.json() == {"image": encode_data_url(b"dressed", "image/jpeg"), "passes": 1}
    assert image_client.calls[0]["seed"] == 5


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"slots": {"chest": {"dataUrl": encode_data_url(b"tee", "image/png")}}}, "Upload a portrait"),
        ({"portrait": encode_data_url(b"portrait", "image/png"), "slots": {}}, "Equip at least one slot"),
        ({"portrait": "not-a-data-url", "slots": {"chest": {"dataUrl": encode_data_url(b"tee", "image/png")}}}, "data URL"),
    ],
)
def test_render_validation_errors(app: FastAPI, client: TestClient, payload: dict, message: str) -> None:
    app.dependency_overrides[get_render_service] = lambda: CheckoutService(
        compositor=LayerCompositor(FakeImageClient([])),
    )

    response = client.post("/api/outfits/render", json=payload)

    assert response.status_code == 400
    assert message in response.json()["error"]


def test_render_pass_failure_is_a_bad_gateway(app: FastAPI, client: TestClient) -> None:
    app.dependency_overrides[get_render_service] = lambda: CheckoutService(
        compositor=LayerCompositor(FakeImageClient([None])),
    )

    response = client.post(
        "/api/outfits/render",
        json={
            "portrait": encode_data_url(b"portrait", "image/png"),
            "slots": {"head": {"dataUrl": encode_data_url(b"cap", "image/png")}},
        },
    )

    assert response.status_code == 502
    assert "Render pass 1" in response.json()["error"]


def _line(slot: str, product_id: str, price: float) -> dict:
    return {
        "slotId": slot,
        "product": {"id": product_id, "name": f"Item {product_id}", "price": price, "source": "surf-shop"},
    }


def test_purchase_returns_order_and_summary(app: FastAPI, client: TestClient) -> None:
    app.dependency_overrides[get_purchase_service] = lambda: _purchase_service([AgentResult("success", "All paid.")])

    response = client.post("/api/purchases", json={"items": [_line("legs", "b", 150), _line("chest", "a", 999)]})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Purchasing 2 items."
    assert body["summary"] == "All paid."
    assert [(item["id"], item["recipientAddress"], item["sendAmount"]) for item in body["order"]] == [
        ("a", "X", 1.0),
        ("b", "Y", 0.15),
    ]


@pytest.mark.parametrize(
    "items",
    [[], [{"slotId": "chest", "product": {"id": "z", "name": "Free tee", "price": 0}}]],
)
def test_purchase_validation_errors(app: FastAPI, client: TestClient, items: list) -> None:
    app.dependency_overrides[get_purchase_service] = lambda: _purchase_service([AgentResult("success", "paid")])

    response = client.post("/api/purchases", json={"items": items})

    assert response.status_code == 400


def test_incomplete_purchase_is_a_bad_gateway(app: FastAPI, client: TestClient) -> None:
    app.dependency_overrides[get_purchase_service] = lambda: _purchase_service([])

    response = client.post("/api/purchases", json={"items": [_line("chest", "a", 999)]})

    assert response.status_code == 502


def test_purchase_rejects_two_items_in_one_slot(app: FastAPI, client: TestClient) -> None:
    runtime_service = _purchase_service([AgentResult("success", "paid")])
    app.dependency_overrides[get_purchase_service] = lambda: runtime_service

    response = client.post("/api/purchases", json={"items": [_line("chest", "a", 999), _line("chest", "b", 150)]})

    assert response.status_code == 400
    assert "chest is listed more than once" in response.json()["error"]
