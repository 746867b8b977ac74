"""Tests for the HTTP API via TestClient."""

import pytest
from fastapi.testclient import TestClient

from storefront_service.errors import PersistenceFailure
from storefront_service.ledger import InventoryLedger
from storefront_service.main import create_app
from storefront_service.reviews import ReviewLog
from storefront_service.store import MemoryStore


def _checkout(client, items, customer=None):
    return client.post("/api/checkout", json={
        "customer": customer or {"name": "Ada", "email": "ada@example.com", "card": "4242"},
        "items": items,
    })


class TestProductsEndpoints:
    def test_list_products(self, client):
        client.post("/api/reviews", json={"productId": 2, "rating": 3, "comment": "fine"})

        response = client.get("/api/products")

        assert response.status_code == 200
        data = response.json()
        assert [p["id"] for p in data] == [1, 2, 3]
        assert data[0]["avgRating"] == 0
        assert data[1]["avgRating"] == 3

    def test_get_product(self, client):
        response = client.get("/api/products/1")
        assert response.status_code == 200
        assert response.json()["stock"] == 10

    def test_get_unknown_product(self, client):
        response = client.get("/api/products/404")
        assert response.status_code == 404
        assert response.json() == {"error": "Product not found"}

    def test_create_product(self, client):
        response = client.post("/api/products", json={
            "name": "Kettle", "price": 29.9, "category": "Home", "stock": 12,
        })

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 4
        assert data["sales"] == 0
        assert data["image"].endswith("?text=Kettle")

    def test_create_product_missing_fields(self, client):
        response = client.post("/api/products", json={"name": "Kettle", "price": 29.9})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    def test_create_product_negative_price(self, client):
        response = client.post("/api/products", json={
            "name": "Kettle", "price": -1, "category": "Home", "stock": 12,
        })
        assert response.status_code == 400
        assert "price" in response.json()["error"]

    def test_update_product(self, client):
        response = client.put("/api/products/3", json={"price": 9.5})

        assert response.status_code == 200
        assert response.json()["price"] == 9.5
        assert response.json()["stock"] == 20

    def test_update_unknown_product(self, client):
        response = client.put("/api/products/77", json={"stock": 1})
        assert response.status_code == 404

    def test_update_negative_stock(self, client):
        response = client.put("/api/products/1", json={"stock": -3})
        assert response.status_code == 400

    @pytest.mark.parametrize("method, path", [
        ("get", "/api/products/abc"),
        ("put", "/api/products/abc"),
        ("get", "/api/reviews/abc"),
    ])
    def test_non_numeric_id_is_not_found(self, client, method, path):
        kwargs = {"json": {"stock": 1}} if method == "put" else {}
        response = getattr(client, method)(path, **kwargs)
        assert response.status_code == 404
        assert response.json() == {"error": "Product not found"}


class TestReviewsEndpoints:
    def test_create_and_list(self, client):
        response = client.post("/api/reviews", json={"productId": 1, "rating": 5, "comment": " Love it "})
        assert response.status_code == 201
        assert response.json()["comment"] == "Love it"

        listed = client.get("/api/reviews/1").json()
        assert [r["id"] for r in listed] == [response.json()["id"]]
        assert client.get("/api/reviews/2").json() == []

    def test_missing_comment(self, client):
        response = client.post("/api/reviews", json={"productId": 1, "rating": 5})
        assert response.status_code == 400


class TestCheckoutEndpoint:
    def test_checkout(self, client):
        response = _checkout(client, [
            {"id": 1, "quantity": 2, "price": 25.0, "name": "Product 1"},
            {"id": 2, "quantity": 1, "price": 4.5},
        ])

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["totalItems"] == 3
        assert data["orderId"]
        assert client.get("/api/products/1").json()["stock"] == 8
        assert client.get("/api/products/1").json()["sales"] == 2

    def test_checkout_beyond_stock_clamps(self, client):
        response = _checkout(client, [{"id": 1, "quantity": 11, "price": 25.0}])

        assert response.status_code == 201
        assert client.get("/api/products/1").json()["stock"] == 0
        assert client.get("/api/analytics").json()["totalRevenue"] == 275.0

    def test_empty_cart(self, client):
        response = _checkout(client, [])
        assert response.status_code == 400

    def test_missing_customer(self, client):
        response = client.post("/api/checkout", json={"items": [{"id": 1, "quantity": 1, "price": 1}]})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    def test_order_persist_failure_is_500_and_restores_stock(self):
        class NoOrdersStore(MemoryStore):
            def save(self, collection, records):
                if collection == "orders":
                    raise PersistenceFailure("Failed to save orders")
                super().save(collection, records)

        store = NoOrdersStore({"products": [
            {"id": 1, "name": "A", "category": "C", "price": 1.0, "stock": 5, "sales": 0},
        ]})
        client = TestClient(create_app(ledger=InventoryLedger(store, ReviewLog(store))))

        response = _checkout(client, [{"id": 1, "quantity": 2, "price": 1.0}])

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save orders"}
        assert client.get("/api/products/1").json()["stock"] == 5


class TestRestockEndpoint:
    def test_restock(self, client):
        response = client.post("/api/restock", json={"updates": [{"id": 1, "stock": 80}, {"id": 9, "stock": 1}]})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Stock updated"}
        assert client.get("/api/products/1").json()["stock"] == 80

    def test_restock_requires_list(self, client):
        response = client.post("/api/restock", json={"updates": {"id": 1, "stock": 80}})
        assert response.status_code == 400


class TestDashboardEndpoints:
    def test_dashboard_data(self, client):
        client.post("/api/reviews", json={"productId": 1, "rating": 4, "comment": "good"})

        data = client.get("/api/dashboard-data").json()

        assert len(data["products"]) == 3
        assert data["products"][0]["avgRating"] == 4
        assert data["reviews"][0]["comment"] == "good"

    def test_analytics(self, client):
        client.post("/api/reviews", json={"productId": 1, "rating": 5, "comment": "excellent service"})
        client.post("/api/reviews", json={"productId": 1, "rating": 1, "comment": "terrible experience"})
        _checkout(client, [{"id": 2, "quantity": 4, "price": 4.5}])

        data = client.get("/api/analytics").json()

        assert data == {
            "totalProducts": 3,
            "totalOrders": 1,
            "totalRevenue": 18.0,
            "totalSales": 7,
            "averageRating": 1.0,
            "lowStockItems": 2,
            "sentiment": {"positive": 1, "negative": 1, "neutral": 0},
        }

    def test_analytics_empty_catalog(self):
        store = MemoryStore()
        client = TestClient(create_app(ledger=InventoryLedger(store, ReviewLog(store))))

        data = client.get("/api/analytics").json()

        assert data["totalProducts"] == 0
        assert data["averageRating"] == 0


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "Server is running"
    assert response.json()["timestamp"].endswith("Z")


@pytest.mark.parametrize("path", ["/products", "/health"])
def test_routes_live_under_api_prefix(client, path):
    assert client.get(path).status_code == 404
