"""
GraphQL schema definition using Ariadne (back-office order API).
"""
from ariadne import (
    EnumType,
    MutationType,
    QueryType,
    ScalarType,
    load_schema_from_path,
    make_executable_schema,
)
from datetime import datetime
from pathlib import Path
from uuid import UUID

from shop.domain.order import OrderStatus
from shop.infra.repositories import EditionRepository
from shop.services.orders import OrderService

# Load schema from .graphql files
SCHEMAS_DIR = Path(__file__).parent / "schemas"
type_defs = "\n".join([
    load_schema_from_path(SCHEMAS_DIR / "common.graphql"),
    load_schema_from_path(SCHEMAS_DIR / "query.graphql"),
    load_schema_from_path(SCHEMAS_DIR / "mutation.graphql"),
])

query = QueryType()
mutation = MutationType()
order_status = EnumType("OrderStatus", OrderStatus)


@query.field("order")
def resolve_order(_, info, id):
    """Resolve order query."""
    return OrderService().get_order(id)


@query.field("orderByPaymentReference")
def resolve_order_by_payment_reference(_, info, reference):
    return OrderService().get_order_by_payment_reference(reference)


@query.field("orders")
def resolve_orders(_, info, status=None, limit=50, offset=0):
    """Resolve orders list with optional status filter and pagination."""
    return OrderService().list_orders(status=status, limit=limit, offset=offset)


@query.field("edition")
def resolve_edition(_, info, artwork_id, size):
    return EditionRepository().get(artwork_id, size)


@query.field("editions")
def resolve_editions(_, info):
    return EditionRepository().list_all()


@mutation.field("updateOrderStatus")
def resolve_update_order_status(_, info, order_id, status):
    """Resolve admin status transition."""
    return OrderService().change_status(order_id, status)


# Define custom scalars
uuid_scalar = ScalarType("UUID")
datetime_scalar = ScalarType("DateTime")


@uuid_scalar.serializer
def serialize_uuid(value):
    """Serialize UUID to string."""
    return str(value)


@uuid_scalar.value_parser
def parse_uuid_value(value):
    """Parse UUID from string."""
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


@datetime_scalar.serializer
def serialize_datetime(value):
    """Serialize DateTime to ISO format string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


@datetime_scalar.value_parser
def parse_datetime_value(value):
    """Parse DateTime from string."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


# Create executable schema
schema = make_executable_schema(
    type_defs,
    query,
    mutation,
    order_status,
    uuid_scalar,
    datetime_scalar,
    convert_names_case=True,
)
