"""Thin adapters over the Twilio and Stripe SDKs.

Both translate SDK exceptions into ``GatewayError`` so the application layer
never imports a vendor SDK. The ``build_*`` factories return ``None`` when
credentials are missing; services treat that as "not configured".
"""

from typing import Optional
import stripe
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient
from shared.core import get_logger
from storefront.core_settings import Settings
from storefront.domain.errors import GatewayError

logger = get_logger(__name__)

class TwilioWhatsAppGateway:
    def __init__(self, account_sid: str, auth_token: str, sender: str):
        self.client = TwilioClient(account_sid, auth_token)
        self.sender = sender

    def send(self, to: str, body: str) -> str:
        """Send ``body`` to an E.164 number over WhatsApp and return the message SID."""
        try:
            message = self.client.messages.create(
                from_=self.sender,
                to=f"whatsapp:{to}",
                body=body,
            )
        except TwilioRestException as e:
            raise GatewayError(e.msg, code=e.code) from e
        return message.sid

class StripeCheckoutGateway:
    def __init__(self, secret_key: str):
        self.secret_key = secret_key

    def create_checkout_session(self, **params) -> str:
        """Create a hosted Checkout Session and return its redirect URL."""
        try:
            session = stripe.checkout.Session.create(api_key=self.secret_key, **params)
        except stripe.StripeError as e:
            raise GatewayError(e.user_message or str(e), code=e.code) from e
        return session.url

def build_messaging_gateway(settings: Settings) -> Optional[TwilioWhatsAppGateway]:
    if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN):
        logger.warning("Twilio credentials missing, WhatsApp notifications disabled")
        return None
    logger.info("Twilio client initialized")
    return TwilioWhatsAppGateway(
        settings.TWILIO_ACCOUNT_SID,
        settings.TWILIO_AUTH_TOKEN,
        settings.TWILIO_WHATSAPP_NUMBER,
    )

def build_checkout_gateway(settings: Settings) -> Optional[StripeCheckoutGateway]:
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY missing, payment links disabled")
        return None
    return StripeCheckoutGateway(settings.STRIPE_SECRET_KEY)
