# Overview: Domain error taxonomy shared by services and the route boundary.

from __future__ import annotations


class ShopError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ShopError, ValueError):
    """400-level input problem."""


class NotFoundError(ShopError):
    """Referenced product, bill or bill item does not exist."""

    status_code = 404


class InsufficientStockError(ShopError):
    """Stock change would drive a product quantity below zero."""

    status_code = 409


class OverReturnError(ShopError):
    """Return quantity exceeds what is still outstanding on the item."""

    status_code = 409


class AlreadyReturnedError(ShopError):
    """Full return requested for a bill that is already RETURNED."""

    status_code = 409


class PersistenceError(ShopError):
    """Transaction or storage failure; the transaction was rolled back."""

    status_code = 500
