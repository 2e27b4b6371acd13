"""Shared-cache keeper for WeChat access tokens and JS-API tickets."""

__version__ = "0.1.0"
