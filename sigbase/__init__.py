"""Signature base construction for HTTP Message Signatures (RFC 9421)."""

__version__ = "0.1.0"

__all__ = ["build", "components", "extract", "message", "structured"]