import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                (
                    "event_id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique event identifier. Enforces idempotency.",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "event_type",
                    models.CharField(
                        help_text="Namespaced event type, e.g. promotion.customer.applied.v1.",
                        max_length=255,
                    ),
                ),
                (
                    "event_version",
                    models.PositiveSmallIntegerField(
                        help_text="Schema version of this event type's payload.",
                    ),
                ),
                (
                    "registry_id",
                    models.UUIDField(
                        help_text="Registry instance the event belongs to.",
                    ),
                ),
                (
                    "actor_id",
                    models.CharField(
                        help_text="Caller that issued the command behind this event.",
                        max_length=255,
                    ),
                ),
                (
                    "correlation_id",
                    models.UUIDField(
                        help_text="Groups events belonging to the same request flow.",
                    ),
                ),
                (
                    "causation_id",
                    models.UUIDField(
                        blank=True,
                        help_text="The event_id that directly caused this event, if any.",
                        null=True,
                    ),
                ),
                (
                    "payload",
                    models.JSONField(
                        help_text="Event payload, structure governed by event_type + version.",
                    ),
                ),
                (
                    "sequence",
                    models.PositiveBigIntegerField(
                        help_text="Position of the event in its registry chain, from 1.",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        help_text="Registry clock time when the event was emitted.",
                    ),
                ),
                (
                    "received_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        help_text="When the event store persisted this event.",
                    ),
                ),
                (
                    "previous_event_hash",
                    models.CharField(
                        help_text="Hash of the preceding event, or GENESIS for the first.",
                        max_length=64,
                    ),
                ),
                (
                    "event_hash",
                    models.CharField(
                        help_text="SHA-256 of this event's payload + previous_event_hash.",
                        max_length=64,
                    ),
                ),
            ],
            options={
                "db_table": "promotion_event_store",
                "ordering": ["registry_id", "sequence"],
            },
        ),
        migrations.AddIndex(
            model_name="event",
            index=models.Index(
                fields=["registry_id", "received_at"],
                name="idx_evt_registry_time",
            ),
        ),
        migrations.AddIndex(
            model_name="event",
            index=models.Index(fields=["event_type"], name="idx_evt_type"),
        ),
        migrations.AddIndex(
            model_name="event",
            index=models.Index(
                fields=["correlation_id"], name="idx_evt_correlation"
            ),
        ),
        migrations.AddConstraint(
            model_name="event",
            constraint=models.UniqueConstraint(
                fields=("registry_id", "sequence"),
                name="uq_evt_registry_sequence",
            ),
        ),
        migrations.AddConstraint(
            model_name="event",
            constraint=models.UniqueConstraint(
                fields=("registry_id", "previous_event_hash"),
                name="uq_evt_registry_prev_hash",
            ),
        ),
    ]
