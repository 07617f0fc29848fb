"""Credential store: the abstract interface and its SQLite implementation."""

from .interface import CredentialStore
from .queries import AccountQueries

__all__ = ["AccountQueries", "CredentialStore"]
