"""Secure Notes API: JWT-authenticated, owner-scoped storage of client-encrypted notes."""

__version__ = "1.0.0"
