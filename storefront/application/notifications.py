from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import timedelta
from typing import Callable, Optional, Protocol
from shared.core import get_logger
from storefront.domain.errors import (
    FailedPrecondition,
    GatewayError,
    Internal,
    InvalidArgument,
    ResourceExhausted,
    Unauthenticated,
)
from storefront.domain.models import Notification, utcnow
from storefront.domain.phone import format_haiti_phone_number
from .schemas import SendWhatsAppRequest, SendWhatsAppResponse

logger = get_logger(__name__)

WHATSAPP_CHANNEL = "whatsapp"
RATE_LIMIT_WINDOW = timedelta(seconds=60)
RATE_LIMIT_MAX_MESSAGES = 10

# Twilio error codes with a more specific meaning than "internal"
INVALID_NUMBER_CODES = {21211}
PRECONDITION_CODES = {
    21608: "WhatsApp not enabled for this number or recipient not opted-in",
    20003: "Messaging provider authentication failed. Check server configuration.",
}

class MessagingGateway(Protocol):
    def send(self, to: str, body: str) -> str: ...

class NotificationService:
    """
    WhatsApp dispatch with a per-user sliding-window limit and an audit row
    per send attempt.

    The limit is a count query followed by the send, so two concurrent calls
    from the same user can both pass it.
    """

    def __init__(self, db: Session, gateway: Optional[MessagingGateway], clock: Callable = utcnow):
        self.db = db
        self.gateway = gateway
        self.clock = clock

    def recent_message_count(self, user_id: str) -> int:
        window_start = self.clock() - RATE_LIMIT_WINDOW
        return self.db.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.channel == WHATSAPP_CHANNEL,
                Notification.created_at > window_start,
            )
        ) or 0

    def send_whatsapp(self, caller_id: Optional[str], request: SendWhatsAppRequest) -> SendWhatsAppResponse:
        if not caller_id:
            raise Unauthenticated("User must be logged in to send WhatsApp messages")

        message_body = request.data.message if request.data else None
        if not (request.to and request.to.strip()) or not (request.template and request.template.strip()) \
                or not (message_body and message_body.strip()):
            raise InvalidArgument("Missing required fields: to, template, data.message")

        if self.recent_message_count(caller_id) >= RATE_LIMIT_MAX_MESSAGES:
            raise ResourceExhausted(
                f"Rate limit exceeded: Maximum {RATE_LIMIT_MAX_MESSAGES} messages per minute"
            )

        if self.gateway is None:
            raise FailedPrecondition("WhatsApp service not configured on server")

        formatted_phone = format_haiti_phone_number(request.to)
        logger.info(
            f"Sending WhatsApp template {request.template} to {formatted_phone}",
            extra={'extra_fields': {'template': request.template, 'user_id': caller_id}}
        )

        try:
            sid = self.gateway.send(formatted_phone, message_body)
        except GatewayError as e:
            logger.error(
                f"WhatsApp send failed: {e.message}",
                extra={'extra_fields': {'provider_code': e.code, 'template': request.template}}
            )
            self._record(caller_id, formatted_phone, request, message_body, "failed", None, e.message)
            raise self._map_gateway_error(e) from e

        logger.info(f"WhatsApp message sent, sid={sid}")
        self._record(caller_id, formatted_phone, request, message_body, "sent", sid, None)
        return SendWhatsAppResponse(
            success=True,
            status="sent",
            provider_reference=sid,
            twilio_sid=sid,
            message="WhatsApp message sent successfully",
        )

    def _record(self, user_id, to, request, body, status, sid, error) -> None:
        """Write the audit row. Failures here never change the send outcome."""
        try:
            self.db.add(Notification(
                user_id=user_id,
                channel=WHATSAPP_CHANNEL,
                to=to,
                template=request.template,
                payload=request.data.model_dump() if request.data else None,
                message_body=body,
                status=status,
                provider_sid=sid,
                error=error,
                created_at=self.clock(),
            ))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(
                "Failed to write notification audit record",
                exc_info=True,
                extra={'extra_fields': {'status': status, 'provider_sid': sid}}
            )

    @staticmethod
    def _map_gateway_error(error: GatewayError) -> Exception:
        if error.code in INVALID_NUMBER_CODES:
            return InvalidArgument("Invalid phone number format")
        if error.code in PRECONDITION_CODES:
            return FailedPrecondition(PRECONDITION_CODES[error.code])
        return Internal(f"Failed to send WhatsApp message: {error.message}")
