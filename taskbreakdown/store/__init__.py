"""Persistence for tasks and subtasks."""

from taskbreakdown.store._base import Store, StoreSession
from taskbreakdown.store.postgres import PostgresSession, PostgresStore

__all__ = ["PostgresSession", "PostgresStore", "Store", "StoreSession"]
