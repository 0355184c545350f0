"""Storefront core: transactional write side of an e-commerce backend."""

__version__ = "0.1.0"
