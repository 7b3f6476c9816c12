"""SwagSuite — promotional-products business management API."""

__version__ = "1.0.0"
