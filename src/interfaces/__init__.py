"""Shared interfaces between the policy editor core and its collaborators."""

from .persistence import PersistenceBridge, PersistenceError, PolicyNotFound, SaveReceipt

__all__ = ["PersistenceBridge", "PersistenceError", "PolicyNotFound", "SaveReceipt"]
