"""
config.py — Runtime Configuration

Settings are read once from environment variables at import time, with
defaults suitable for a local run. Fixed business constants live here too.
"""

import os
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent

DATA_DIR = os.environ.get("STOREFRONT_DATA_DIR", "data")
SEED_DIR = os.environ.get("STOREFRONT_SEED_DIR", str(_PACKAGE_DIR / "seed"))

LOG_FILE = os.environ.get("STOREFRONT_LOG_FILE", "storefront.log")
LOG_LEVEL = os.environ.get("STOREFRONT_LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("STOREFRONT_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))

API_PREFIX = "/api"

# Products with stock below this value count as low stock in analytics
LOW_STOCK_THRESHOLD = 30
