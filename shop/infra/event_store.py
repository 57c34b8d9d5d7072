"""
Event store for the order and edition audit trail (lightweight).
"""
from __future__ import annotations

import logging
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from django.db import models
from django.utils import timezone

from shop.domain.events import DomainEvent, EventVersion
from shop.infra.models import TimeStampedModel


logger = logging.getLogger(__name__)


class EventStore(TimeStampedModel):
    """Event store for domain events."""
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    aggregate_id = models.UUIDField()
    aggregate_type = models.CharField(max_length=50)  # "Order" or "Edition"
    event_type = models.CharField(max_length=100)
    event_version = models.CharField(max_length=10, default=EventVersion.V1.value)
    event_data = models.JSONField()
    sequence_number = models.BigIntegerField()  # For ordering events

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=("aggregate_id", "aggregate_type", "sequence_number"),
                name="unique_event_sequence",
            ),
        ]
        indexes = [
            models.Index(fields=("aggregate_id", "aggregate_type"), name="shop_event_aggregate_idx"),
        ]
        ordering = ["sequence_number"]


class EventStoreRepository:
    """Repository for event store."""

    def save_event(self, event: DomainEvent, aggregate_type: str) -> None:
        """Save domain event to store."""
        if not event.occurred_at:
            event.occurred_at = timezone.now().isoformat()

        last_event = (
            EventStore.objects
            .filter(aggregate_id=event.aggregate_id, aggregate_type=aggregate_type)
            .order_by("-sequence_number")
            .first()
        )
        sequence_number = (last_event.sequence_number + 1) if last_event else 1

        EventStore.objects.create(
            aggregate_id=event.aggregate_id,
            aggregate_type=aggregate_type,
            event_type=event.event_type,
            event_version=event.version.value,
            event_data=self._serialize_event(event),
            sequence_number=sequence_number,
        )
        logger.debug(
            "event_stored",
            extra={"operation": event.event_type, "status": sequence_number},
        )

    def get_events(self, aggregate_id: UUID, aggregate_type: str) -> list[dict]:
        """Get all events for aggregate."""
        events = (
            EventStore.objects
            .filter(aggregate_id=aggregate_id, aggregate_type=aggregate_type)
            .order_by("sequence_number")
        )
        return [self._deserialize_event(e) for e in events]

    def _serialize_event(self, event: DomainEvent) -> dict:
        """Serialize event to dict."""
        data = {
            "event_id": str(event.event_id),
            "aggregate_id": str(event.aggregate_id),
            "event_type": event.event_type,
            "version": event.version.value,
            "occurred_at": event.occurred_at,
        }
        for key, value in event.__dict__.items():
            if key in data:
                continue
            if isinstance(value, (UUID, Decimal)):
                data[key] = str(value)
            elif isinstance(value, Enum):
                data[key] = value.value
            else:
                data[key] = value
        return data

    def _deserialize_event(self, event_orm: EventStore) -> dict:
        """Deserialize event from store."""
        return {
            "id": str(event_orm.id),
            "aggregate_id": str(event_orm.aggregate_id),
            "event_type": event_orm.event_type,
            "version": event_orm.event_version,
            "data": event_orm.event_data,
            "sequence_number": event_orm.sequence_number,
            "occurred_at": event_orm.created_at.isoformat(),
        }
