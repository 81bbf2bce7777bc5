"""
Promotion Registry - Event Store Persistence Public API
"""

from core.event_store.persistence.service import persist_event
from core.event_store.persistence.repository import load_events

__all__ = ["persist_event", "load_events"]
