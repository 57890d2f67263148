"""Storefront: product catalog, per-user cart and order placement."""

__version__ = "0.1.0"
