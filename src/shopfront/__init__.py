"""Shopfront: product catalog and ordering service"""

__version__ = "0.1.0"
