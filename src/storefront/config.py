"""
Runtime configuration, read once from the environment at import time.
"""

import os

DB_PATH = os.getenv("STOREFRONT_DB_PATH", "data/storefront.sqlite")

# only meant for local runs; set STOREFRONT_SECRET_KEY anywhere else
DEV_SECRET_KEY = "storefront-development-secret-key-change-me"
SECRET_KEY = os.getenv("STOREFRONT_SECRET_KEY", DEV_SECRET_KEY)
JWT_ALGORITHM = os.getenv("STOREFRONT_JWT_ALGORITHM", "HS256")
TOKEN_TTL_MINUTES = int(os.getenv("STOREFRONT_TOKEN_TTL_MINUTES", "1440"))

BCRYPT_ROUNDS = int(os.getenv("STOREFRONT_BCRYPT_ROUNDS", "12"))
MIN_PASSWORD_LENGTH = int(os.getenv("STOREFRONT_MIN_PASSWORD_LENGTH", "8"))

# seconds a single store call may take before it fails
STORE_TIMEOUT = float(os.getenv("STOREFRONT_STORE_TIMEOUT", "5.0"))

# hide internal error details from callers
HARDENED = bool(os.getenv("STOREFRONT_HARDENED"))

DEBUG = bool(os.getenv("DEBUG"))
LOG_LEVEL = os.getenv("STOREFRONT_LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()
LOG_FORMAT = os.getenv("STOREFRONT_LOG_FORMAT", "[%(name)s]  %(message)s")
