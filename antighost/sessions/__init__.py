"""Persisted OAuth2 session handling."""

from .store import SessionStore

__all__ = ['SessionStore']
