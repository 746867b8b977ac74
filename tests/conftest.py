import os

# Keep test runs from writing a log file into the working directory
os.environ.setdefault("STOREFRONT_LOG_FILE", "")

import pytest
from fastapi.testclient import TestClient

from storefront_service.ledger import InventoryLedger
from storefront_service.main import create_app
from storefront_service.reviews import ReviewLog
from storefront_service.store import MemoryStore


def make_product(id, stock=50, sales=0, price=10.0, **overrides):
    product = {
        "id": id,
        "name": f"Product {id}",
        "category": "General",
        "price": price,
        "stock": stock,
        "sales": sales,
        "description": "",
        "image": "",
    }
    product.update(overrides)
    return product


@pytest.fixture()
def store():
    return MemoryStore({
        "products": [
            make_product(1, stock=10, price=25.0),
            make_product(2, stock=100, sales=3, price=4.5),
            make_product(3, stock=20, price=12.0),
        ],
    })


@pytest.fixture()
def review_log(store):
    return ReviewLog(store)


@pytest.fixture()
def ledger(store, review_log):
    return InventoryLedger(store, review_log)


@pytest.fixture()
def client(ledger):
    return TestClient(create_app(ledger=ledger))


@pytest.fixture()
def product_factory():
    return make_product
