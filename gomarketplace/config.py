"""Cart storage configuration read from the environment."""
import os
from pathlib import Path


# Storage backend: "file" (device-local), "memory", or "redis"
CART_STORAGE_BACKEND = os.environ.get("CART_STORAGE_BACKEND", "file").lower()

# Directory for the file backend
CART_STORAGE_DIR = Path(
    os.environ.get("CART_STORAGE_DIR", str(Path.home() / ".gomarketplace"))
).expanduser()

# Single key holding the serialized cart
CART_STORAGE_KEY = os.environ.get("CART_STORAGE_KEY", "@GoMarketPlace:items")

# Redis expiry for the cart key in seconds (0 = keep forever)
CART_REDIS_TTL = int(os.environ.get("CART_REDIS_TTL", "0"))

# Attempts per storage write before the write is dropped
STORAGE_WRITE_ATTEMPTS = int(os.environ.get("STORAGE_WRITE_ATTEMPTS", "3"))

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

SUPPORTED_BACKENDS = ("file", "memory", "redis")
