"""
Promotion Registry - Event Store App Configuration
====================================================
The durable side of the registry. Every accepted mutation is
stored here as an immutable event, so registry state can be
rebuilt by replay.

This app does NOT:
- Interpret event meaning
- Hold registry state
- Decide whether a mutation is allowed
"""

from django.apps import AppConfig


class EventStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.event_store"
    label = "event_store"
    verbose_name = "Promotion Event Store"
