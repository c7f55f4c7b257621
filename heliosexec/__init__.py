"""Verified access to Ethereum execution-layer data over an untrusted RPC."""

__version__ = "0.4.1"