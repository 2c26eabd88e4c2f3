"""GoMarketplace client cart."""

__version__ = "0.1.0"
