"""Collaborator backends for running imports without an external shop."""

from .memory import InMemoryCatalog

__all__ = ["InMemoryCatalog"]
