"""
Promotion Registry - Event Model
==================================
The only writable record in the event store.

Rules:
- Insert only. No updates, no deletes.
- Every event has exactly one actor (actor_id)
- Hash chain per registry via previous_event_hash → event_hash
- correlation_id is mandatory, causation_id is nullable
"""

import uuid

from django.db import models


class Event(models.Model):
    """
    One immutable registry event.

    Field groups:
        Identity & Classification
        Registry Scope & Actor
        Causality
        Payload
        Temporal
        Integrity (Hash-Chain)
    """

    # ── Identity & Classification ─────────────────────────────
    event_id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique event identifier. Enforces idempotency.",
    )

    event_type = models.CharField(
        max_length=255,
        help_text="Namespaced event type, e.g. promotion.customer.applied.v1.",
    )

    event_version = models.PositiveSmallIntegerField(
        help_text="Schema version of this event type's payload.",
    )

    # ── Registry Scope & Actor ────────────────────────────────
    registry_id = models.UUIDField(
        help_text="Registry instance the event belongs to.",
    )

    actor_id = models.CharField(
        max_length=255,
        help_text="Caller that issued the command behind this event.",
    )

    # ── Causality ─────────────────────────────────────────────
    correlation_id = models.UUIDField(
        help_text="Groups events belonging to the same request flow.",
    )

    causation_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="The event_id that directly caused this event, if any.",
    )

    # ── Payload ───────────────────────────────────────────────
    payload = models.JSONField(
        help_text="Event payload, structure governed by event_type + version.",
    )

    # ── Chain Position ────────────────────────────────────────
    sequence = models.PositiveBigIntegerField(
        help_text="Position of the event in its registry chain, from 1.",
    )

    # ── Temporal ──────────────────────────────────────────────
    created_at = models.DateTimeField(
        help_text="Registry clock time when the event was emitted.",
    )

    received_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the event store persisted this event.",
    )

    # ── Integrity (Hash-Chain) ────────────────────────────────
    previous_event_hash = models.CharField(
        max_length=64,
        help_text="Hash of the preceding event, or GENESIS for the first.",
    )

    event_hash = models.CharField(
        max_length=64,
        help_text="SHA-256 of this event's payload + previous_event_hash.",
    )

    class Meta:
        db_table = "promotion_event_store"
        ordering = ["registry_id", "sequence"]
        indexes = [
            models.Index(
                fields=["registry_id", "received_at"],
                name="idx_evt_registry_time",
            ),
            models.Index(fields=["event_type"], name="idx_evt_type"),
            models.Index(fields=["correlation_id"], name="idx_evt_correlation"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=("registry_id", "sequence"),
                name="uq_evt_registry_sequence",
            ),
            models.UniqueConstraint(
                fields=("registry_id", "previous_event_hash"),
                name="uq_evt_registry_prev_hash",
            ),
        ]

    def save(self, *args, **kwargs):
        """INSERT only. A stored event is never rewritten."""
        if not self._state.adding:
            raise PermissionError(
                "Events are immutable. Cannot update a persisted event."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Events are never deleted.")

    def __str__(self):
        return f"[{self.event_type}] {self.event_id}"
