"""
Expose ORM models for Django's auto-discovery while keeping real definitions
under the infrastructure module.
"""

from shop.infra.models import (  # noqa: F401
    ArtworkEditionORM,
    ArtworkORM,
    IdempotencyKey,
    OrderItemORM,
    OrderORM,
)
from shop.infra.event_store import EventStore  # noqa: F401
