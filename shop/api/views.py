"""
HTTP views: checkout, payment webhook, checkout session lookup and the
staff GraphQL endpoint.
"""
import hashlib
import json
import logging
from uuid import uuid4

from ariadne import graphql_sync
from django.db import DatabaseError, IntegrityError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from shop.api.middleware import ErrorHandler, ValidationError
from shop.api.parsers import parse_checkout_request
from shop.api.schema import schema
from shop.domain.exceptions import ShopError
from shop.infra.models import IdempotencyKey
from shop.infra.payments import PaymentGateway, payment_confirmation_from_session
from shop.services.checkout import CheckoutService
from shop.services.payments import PaymentEventProcessor

logger = logging.getLogger(__name__)

HANDLED_EVENT_TYPES = (
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
)


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway.from_settings()


class CheckoutView:
    """Checkout endpoint with Idempotency-Key replay and structured logging."""

    operation = "CREATE_CHECKOUT"

    def dispatch(self, request):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        idempotency_key = request.headers.get("Idempotency-Key")

        logger.info(
            "checkout_request",
            extra={
                "request_id": request_id,
                "idempotency_key": idempotency_key[:8] + "..." if idempotency_key else None,
                "operation": self.operation,
            },
        )

        try:
            data = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return ErrorHandler.handle_error(ValidationError("Invalid JSON"))

        request_hash = self._create_request_hash(data)
        if idempotency_key:
            existing = IdempotencyKey.objects.filter(
                key=idempotency_key,
                operation=self.operation,
            ).first()
            if existing:
                if existing.request_hash == request_hash:
                    logger.info(
                        "idempotent_request_cached",
                        extra={"request_id": request_id, "idempotency_key": idempotency_key},
                    )
                    return JsonResponse(existing.response_payload)

                logger.warning(
                    "idempotency_key_conflict",
                    extra={"request_id": request_id, "idempotency_key": idempotency_key},
                )
                return ErrorHandler.error_response(
                    "DUPLICATE_REQUEST",
                    "Idempotency key already used with different request",
                )

        try:
            items, customer = parse_checkout_request(data)
            result = CheckoutService(gateway=get_payment_gateway()).create_checkout_session(items, customer)
        except ValueError as e:
            response = ErrorHandler.handle_error(ValidationError(str(e)))
        except Exception as e:
            response = ErrorHandler.handle_error(e)
        else:
            response = JsonResponse(result)
            if idempotency_key:
                self._save_idempotency_key(idempotency_key, request_hash, result, request_id)

        logger.info(
            "checkout_response",
            extra={"request_id": request_id, "status": response.status_code},
        )
        return response

    def _save_idempotency_key(self, key: str, request_hash: str, payload: dict, request_id: str) -> None:
        try:
            IdempotencyKey.objects.create(
                key=key,
                operation=self.operation,
                request_hash=request_hash,
                response_payload=payload,
            )
        except IntegrityError as e:
            # a concurrent request with the same key stored its response first
            logger.warning(
                "failed_to_save_idempotency",
                extra={"request_id": request_id, "error": str(e)},
            )

    def _create_request_hash(self, data) -> str:
        """Create hash of request body for deduplication."""
        content = json.dumps(data, sort_keys=True)
        return hashlib.sha256(content.encode()).hexdigest()


@csrf_exempt
@require_http_methods(["POST"])
def checkout_view(request):
    """Create a checkout session for the cart."""
    return CheckoutView().dispatch(request)


@require_http_methods(["GET"])
def checkout_session_view(request):
    """Order summary for the checkout success page."""
    session_id = request.GET.get("session_id")
    if not session_id:
        return ErrorHandler.handle_error(ValidationError("Session ID is required"))

    try:
        summary = CheckoutService(gateway=get_payment_gateway()).describe_session(session_id)
    except Exception as e:
        return ErrorHandler.handle_error(e)
    return JsonResponse(summary)


@csrf_exempt
@require_http_methods(["POST"])
def stripe_webhook_view(request):
    """
    Payment provider webhook.

    2xx tells the provider to stop retrying (handled, ignored or replayed);
    5xx asks it to retry after a transient failure.
    """
    try:
        event = get_payment_gateway().parse_webhook(
            request.body,
            request.headers.get("Stripe-Signature"),
        )
    except ShopError as e:
        logger.warning("webhook_rejected", extra={"error": e.message})
        return ErrorHandler.handle_error(e)

    event_type = event.get("type")
    event_id = event.get("id")
    if event_type not in HANDLED_EVENT_TYPES:
        logger.info("webhook_ignored", extra={"operation": event_type, "request_id": event_id})
        return JsonResponse({"received": True})

    session = (event.get("data") or {}).get("object") or {}
    if session.get("payment_status") != "paid":
        logger.info(
            "webhook_payment_not_settled",
            extra={"operation": event_type, "request_id": event_id, "status": session.get("payment_status")},
        )
        return JsonResponse({"received": True})

    try:
        confirmation = payment_confirmation_from_session(session)
        order = PaymentEventProcessor().process(confirmation)
    except DatabaseError as e:
        logger.error(
            "webhook_storage_error",
            extra={"request_id": event_id, "error": str(e)},
            exc_info=True,
        )
        return ErrorHandler.error_response("INTERNAL_ERROR", "Webhook handler failed", 500)
    except Exception as e:
        logger.error(
            "webhook_failed",
            extra={"operation": event_type, "request_id": event_id, "error": str(e)},
        )
        response = ErrorHandler.handle_error(e)
        if response.status_code >= 500:
            # gateway errors (502) surface as 500 so the provider retries
            response.status_code = 500
        return response

    return JsonResponse({
        "received": True,
        "orderId": str(order.id),
        "status": order.status.value,
    })


class OrdersGraphQLView:
    """Staff-only GraphQL view with structured logging."""

    def dispatch(self, request):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated and user.is_staff):
            return ErrorHandler.error_response("FORBIDDEN", "Staff access required")

        logger.info(
            "graphql_request",
            extra={"request_id": request_id, "user_id": user.pk, "operation": "graphql"},
        )

        if request.method == "GET":
            return JsonResponse({"message": "GraphQL endpoint. Use POST for queries."})

        try:
            data = json.loads(request.body)
        except json.JSONDecodeError:
            return ErrorHandler.handle_error(ValidationError("Invalid JSON"))

        success, result = graphql_sync(
            schema,
            data,
            context_value={"request": request},
        )
        status_code = 200 if success else 400

        logger.info(
            "graphql_response",
            extra={"request_id": request_id, "user_id": user.pk, "status": status_code},
        )
        return JsonResponse(result, status=status_code)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def graphql_view(request):
    """GraphQL endpoint."""
    return OrdersGraphQLView().dispatch(request)
