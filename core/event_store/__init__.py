"""
Promotion Registry - Event Store
==================================
Append-only, hash-chained record of every accepted registry event.
Importing this package does not load Django models; use
core.event_store.persistence for the database-backed store and
core.event_store.memory for the in-process one.
"""
