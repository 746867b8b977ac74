"""
main.py — FastAPI Entry Point for the Storefront Service

This module provides the REST API of the retail storefront. The shopping UI
and the admin dashboard talk to it with JSON bodies under the `/api` prefix.

Responsibilities:
    • Expose catalog, review, checkout, restock and analytics endpoints
    • Wire the Inventory Ledger to its durable store and review log
    • Map domain errors to JSON error responses ({"error": "..."})
    • Provide system health information
"""

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import List

from . import config
from .errors import InvalidInput, NotFound, StorefrontError
from .ledger import InventoryLedger
from .logging_config import setup_logging, get_logger
from .models import (
    Acknowledgement,
    Analytics,
    CatalogEntry,
    CheckoutRequest,
    CheckoutResult,
    DashboardData,
    HealthStatus,
    Product,
    ProductCreate,
    ProductUpdate,
    RestockRequest,
    Review,
    ReviewCreate,
    describe_validation_error,
)
from .reviews import ReviewLog, utc_timestamp
from .store import JsonFileStore

log = get_logger(__name__)

router = APIRouter(prefix=config.API_PREFIX)


def get_ledger(request: Request) -> InventoryLedger:
    return request.app.state.ledger


def get_reviews(request: Request) -> ReviewLog:
    return request.app.state.reviews


# --- Products ---

@router.get("/products", response_model=List[CatalogEntry])
def list_products(ledger: InventoryLedger = Depends(get_ledger)):
    """Returns the full catalog, each product annotated with `avgRating`."""
    return ledger.list_catalog()


@router.get("/products/{product_id}", response_model=Product)
def get_product(product_id: int, ledger: InventoryLedger = Depends(get_ledger)):
    return ledger.get_product(product_id)


@router.post("/products", status_code=201, response_model=Product)
def create_product(body: ProductCreate, ledger: InventoryLedger = Depends(get_ledger)):
    """
    Adds a product to the catalog (admin dashboard).

    Returns:
        Product: The created product with its assigned id.

    Raises:
        400: If `name`, `price`, `category` or `stock` is missing or invalid.
    """
    return ledger.create_product(body)


@router.put("/products/{product_id}", response_model=Product)
def update_product(product_id: int, body: ProductUpdate, ledger: InventoryLedger = Depends(get_ledger)):
    return ledger.update_product(product_id, body)


# --- Reviews ---

@router.get("/reviews/{product_id}", response_model=List[Review])
def list_reviews(product_id: int, reviews: ReviewLog = Depends(get_reviews)):
    return reviews.list_reviews(product_id)


@router.post("/reviews", status_code=201, response_model=Review)
def create_review(body: ReviewCreate, reviews: ReviewLog = Depends(get_reviews)):
    return reviews.add_review(body)


# --- Checkout & inventory ---

@router.post("/checkout", status_code=201, response_model=CheckoutResult)
def checkout(body: CheckoutRequest, ledger: InventoryLedger = Depends(get_ledger)):
    """
    Places an order from the shopping cart.

    Stock of every known product is decremented (floored at 0) and its sales
    counter increased. The order total uses the prices sent by the client.

    Returns:
        dict: JSON response containing:
            - success (bool): Always true on 201.
            - orderId (str): Id of the stored order.
            - message (str): Human-readable confirmation.
            - totalItems (int): Units decremented against known products.
    """
    log.info(f"Checkout received with {len(body.items)} line(s).")
    return ledger.apply_checkout(body)


@router.post("/restock", response_model=Acknowledgement)
def restock(body: RestockRequest, ledger: InventoryLedger = Depends(get_ledger)):
    return ledger.apply_restock(body)


# --- Dashboard ---

@router.get("/dashboard-data", response_model=DashboardData)
def dashboard_data(ledger: InventoryLedger = Depends(get_ledger)):
    return ledger.dashboard_data()


@router.get("/analytics", response_model=Analytics)
def analytics(ledger: InventoryLedger = Depends(get_ledger)):
    return ledger.compute_analytics()


# Liveness
@router.get("/health", response_model=HealthStatus)
def health_check():
    """Reports that the API process is up. Touches neither the store nor the ledger lock."""
    return HealthStatus(status="Server is running", timestamp=utc_timestamp())


# --- Error handling ---

async def handle_storefront_error(request: Request, exc: StorefrontError):
    if isinstance(exc, (InvalidInput, NotFound)):
        log.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        log.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_validation_error(request: Request, exc: RequestValidationError):
    # every path parameter is a product id; one that is not an integer matches nothing
    if any(error["loc"] and error["loc"][0] == "path" for error in exc.errors()):
        log.warning(f"{request.method} {request.url.path} -> 404: malformed product id")
        return JSONResponse(status_code=404, content={"error": "Product not found"})
    message = describe_validation_error(exc)
    log.warning(f"{request.method} {request.url.path} -> 400: {message}")
    return JSONResponse(status_code=400, content={"error": message})


async def handle_unexpected_error(request: Request, exc: Exception):
    log.critical(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(ledger: InventoryLedger = None, reviews: ReviewLog = None) -> FastAPI:
    """
    Builds the FastAPI application.

    Args:
        ledger (InventoryLedger): Ledger to serve. Built from configuration when omitted.
        reviews (ReviewLog): Review log to serve. Defaults to the ledger's review log.

    Returns:
        FastAPI: The configured application.
    """
    if ledger is None:
        store = JsonFileStore(config.DATA_DIR, seed_dir=config.SEED_DIR)
        ledger = InventoryLedger(store, reviews or ReviewLog(store))

    app = FastAPI(title="Retail Storefront API")
    app.state.ledger = ledger
    app.state.reviews = reviews or ledger.reviews

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StorefrontError, handle_storefront_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(router)
    return app


# Initialization
# Configure logging and initialize FastAPI app
setup_logging()
app = create_app()


def run():
    """Starts the API server with uvicorn (console script `storefront`)."""
    import uvicorn

    log.info(f"Storefront API starting on http://{config.HOST}:{config.PORT}{config.API_PREFIX}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
