# backend/shopledger/config.py
from __future__ import annotations
import os


SALE_STOCK_POLICY_ALLOW_NEGATIVE = "allow_negative"
SALE_STOCK_POLICY_ENFORCE_FLOOR = "enforce_floor"


class Config:
    # SQLite DB stored in backend/instance/shopledger.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Display fallback when a bill is saved without a customer
    DEFAULT_CUSTOMER_NAME = "Walk-in Customer"
    RECENT_BILLS_LIMIT = int(os.environ.get("RECENT_BILLS_LIMIT", "50"))

    # allow_negative: saving a bill may drive stock below zero (legacy behaviour)
    # enforce_floor: a bill that would oversell any product is rejected as a whole
    SALE_STOCK_POLICY = os.environ.get("SALE_STOCK_POLICY", SALE_STOCK_POLICY_ALLOW_NEGATIVE)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"
    SALE_STOCK_POLICY = SALE_STOCK_POLICY_ALLOW_NEGATIVE
