"""
ledger.py — Inventory Ledger Service

The ledger owns the authoritative catalog: product records including their
stock and cumulative sales counters. It also appends completed purchases to
the order log. Every mutation is a read-modify-write of a whole collection.

Concurrency:
    All catalog mutations (create, update, restock, checkout) run under one
    serializing lock held across the full read-modify-write span, so two
    checkouts never compute their stock decrement from the same stale read.
    Reads take the same lock for their whole load. A checkout writes two
    collections (and the catalog a second time when it compensates), so a
    reader must not see the products of one state and the orders of another.

Stock policy:
    A checkout asking for more units than are in stock is not rejected. The
    stock is clamped to 0, sales grow by the full quantity and the order is
    recorded with the full requested total.

Compensation:
    A checkout persists the catalog first and the order second. If writing
    the order fails, the pre-checkout catalog is written back before the
    failure is reported (Saga-style compensation).
"""

import threading
import uuid
from typing import Iterable, List, Optional
from urllib.parse import quote

from . import config
from .errors import NotFound, PersistenceFailure
from .logging_config import get_logger
from .models import (
    Acknowledgement,
    Analytics,
    CatalogEntry,
    CheckoutRequest,
    CheckoutResult,
    DashboardData,
    Order,
    Product,
    ProductCreate,
    ProductUpdate,
    RestockRequest,
    parse,
)
from .reviews import ReviewLog, average_rating, utc_timestamp
from .sentiment import KeywordSentimentClassifier, SentimentClassifier, tally
from .store import ORDERS, PRODUCTS, Store

PLACEHOLDER_IMAGE = "https://via.placeholder.com/250x250?text="

log = get_logger(__name__)


def next_product_id(products: Iterable[Product]) -> int:
    """Returns the highest existing id plus one, or 1 for an empty catalog."""
    return max((p.id for p in products), default=0) + 1


class InventoryLedger:
    """
    Inventory Ledger Service.

    Args:
        store (Store): Durable store holding the products and orders collections.
        reviews (ReviewLog): Source of the ratings and comments used for aggregation.
        classifier (SentimentClassifier): Classifies review comments. Defaults to keyword matching.
        low_stock_threshold (int): Products with stock below this count as low stock.
    """

    def __init__(
            self,
            store: Store,
            reviews: ReviewLog,
            classifier: Optional[SentimentClassifier] = None,
            low_stock_threshold: int = config.LOW_STOCK_THRESHOLD,
    ):
        self.store = store
        self.reviews = reviews
        self.classifier = classifier or KeywordSentimentClassifier()
        self.low_stock_threshold = low_stock_threshold
        self._lock = threading.RLock()

    # --- Reads ---

    def _load_products(self) -> List[Product]:
        return [Product.model_validate(r) for r in self.store.load(PRODUCTS)]

    def list_catalog(self) -> List[CatalogEntry]:
        """Returns every product annotated with its average rating."""
        with self._lock:
            products = self._load_products()
            reviews = self.reviews.list_reviews()
        return [
            CatalogEntry.model_validate({**p.model_dump(), "avgRating": average_rating(p.id, reviews)})
            for p in products
        ]

    def get_product(self, product_id: int) -> Product:
        with self._lock:
            products = self._load_products()
        for product in products:
            if product.id == product_id:
                return product
        raise NotFound("Product not found")

    def list_orders(self) -> List[Order]:
        with self._lock:
            records = self.store.load(ORDERS)
        return [Order.model_validate(r) for r in records]

    def dashboard_data(self) -> DashboardData:
        with self._lock:
            return DashboardData(products=self.list_catalog(), reviews=self.reviews.list_reviews())

    # --- Catalog mutations ---

    def create_product(self, fields) -> Product:
        """
        Adds a product to the catalog.

        Args:
            fields (ProductCreate | dict): `name`, `price`, `category` and `stock` are required;
                `description` and `image` are optional.

        Returns:
            Product: The stored product with its assigned id and `sales` set to 0.

        Raises:
            InvalidInput: If a required field is missing or invalid.
            PersistenceFailure: If the catalog cannot be read or written.
        """
        data = parse(ProductCreate, fields)
        with self._lock:
            products = self._load_products()
            product = Product(
                id=next_product_id(products),
                name=data.name,
                price=data.price,
                category=data.category,
                stock=data.stock,
                sales=0,
                description=data.description or "",
                image=data.image or PLACEHOLDER_IMAGE + quote(data.name, safe=""),
            )
            products.append(product)
            self._save_products(products)

        log.info(f"[Product: {product.id}] Created '{product.name}' with stock {product.stock}.")
        return product

    def update_product(self, product_id: int, fields) -> Product:
        """Overwrites `stock` and/or `price` of one product. Omitted fields stay unchanged."""
        data = parse(ProductUpdate, fields)
        with self._lock:
            products = self._load_products()
            product = next((p for p in products if p.id == product_id), None)
            if product is None:
                raise NotFound("Product not found")
            if data.stock is not None:
                product.stock = data.stock
            if data.price is not None:
                product.price = data.price
            self._save_products(products)

        log.info(f"[Product: {product_id}] Updated (stock={product.stock}, price={product.price}).")
        return product

    def apply_restock(self, request) -> Acknowledgement:
        """
        Overwrites the stock of several products in one persisted write.

        Entries for unknown product ids are skipped. The new value replaces the
        current stock; it is not added to it.

        Args:
            request (RestockRequest | dict | list): `{"updates": [{"id": .., "stock": ..}]}`
                or the bare list of updates.
        """
        if isinstance(request, list):
            request = {"updates": request}
        data = parse(RestockRequest, request)
        with self._lock:
            products = self._load_products()
            by_id = {p.id: p for p in products}
            applied = 0
            for update in data.updates:
                product = by_id.get(update.id)
                if product is None:
                    log.warning(f"[Restock] Unknown product {update.id} skipped.")
                    continue
                product.stock = update.stock
                applied += 1
            self._save_products(products)

        log.info(f"[Restock] {applied} of {len(data.updates)} products restocked.")
        return Acknowledgement(message="Stock updated")

    def apply_checkout(self, customer, items=None) -> CheckoutResult:
        """
        Records a purchase: decrements stock, increments sales and appends the order.

        Args:
            customer (dict | CheckoutRequest): Free-form customer data, or a complete
                checkout request (then `items` is ignored).
            items (list): Lines with `id`, `quantity` and the client-side unit `price`.

        Returns:
            CheckoutResult: The new order id and the number of units decremented
            against known products.

        Raises:
            InvalidInput: If the customer is missing or there are no items.
            PersistenceFailure: If the catalog or the order log cannot be written.
                When the order write fails, the catalog is restored first.
        """
        if isinstance(customer, CheckoutRequest):
            data = customer
        else:
            data = parse(CheckoutRequest, {"customer": customer, "items": items or []})

        order_id = str(uuid.uuid4())
        log_prefix = f"[Order: {order_id}]"
        total_amount = round(sum(item.price * item.quantity for item in data.items), 2)

        with self._lock:
            original_records = self.store.load(PRODUCTS)
            products = [Product.model_validate(r) for r in original_records]
            by_id = {p.id: p for p in products}

            decremented = 0
            for item in data.items:
                product = by_id.get(item.id)
                if product is None:
                    log.warning(f"{log_prefix} Product {item.id} not in catalog, stock untouched.")
                    continue
                if item.quantity > product.stock:
                    log.warning(
                        f"{log_prefix} Product {product.id}: requested {item.quantity}, "
                        f"only {product.stock} in stock. Clamping stock to 0."
                    )
                product.stock = max(0, product.stock - item.quantity)
                product.sales += item.quantity
                decremented += item.quantity

            self._save_products(products)

            order = Order(
                id=order_id,
                customer=data.customer,
                items=data.items,
                totalAmount=total_amount,
                timestamp=utc_timestamp(),
            )
            try:
                orders = self.store.load(ORDERS)
                orders.append(order.model_dump())
                self.store.save(ORDERS, orders)
            except PersistenceFailure:
                log.error(f"{log_prefix} Order could not be stored. Restoring catalog.")
                self._compensate_catalog(log_prefix, original_records)
                raise

        log.info(f"{log_prefix} Checkout complete: {decremented} units, total {total_amount}.")
        return CheckoutResult(orderId=order_id, totalItems=decremented)

    def _compensate_catalog(self, log_prefix: str, records: List[dict]):
        try:
            self.store.save(PRODUCTS, records)
            log.info(f"{log_prefix} Compensation successful, catalog restored.")
        except PersistenceFailure as e:
            log.critical(f"{log_prefix} COMPENSATION FAILED: {e}. Catalog needs manual repair!")

    def _save_products(self, products: List[Product]):
        self.store.save(PRODUCTS, [p.model_dump() for p in products])

    # --- Aggregation ---

    def compute_analytics(self) -> Analytics:
        """
        Aggregates catalog, order and review data.

        `averageRating` is the mean of the per-product average ratings. It is 0
        for an empty catalog.
        """
        with self._lock:
            products = self._load_products()
            reviews = self.reviews.list_reviews()
            orders = self.list_orders()

        ratings = [average_rating(p.id, reviews) for p in products]
        return Analytics(
            totalProducts=len(products),
            totalOrders=len(orders),
            totalRevenue=round(sum(o.totalAmount for o in orders), 2),
            totalSales=sum(p.sales for p in products),
            averageRating=round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
            lowStockItems=sum(1 for p in products if p.stock < self.low_stock_threshold),
            sentiment=tally((r.comment for r in reviews), self.classifier),
        )
