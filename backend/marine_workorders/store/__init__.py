"""Realtime store adapters"""

from marine_workorders.store.base import RealtimeStore, Subscription
from marine_workorders.store.memory import InMemoryStore
from marine_workorders.store.paths import TenantPaths

__all__ = ["RealtimeStore", "Subscription", "InMemoryStore", "TenantPaths"]
