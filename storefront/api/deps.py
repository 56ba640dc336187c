from fastapi import Request
from functools import lru_cache
from typing import Optional
from shared.core import set_request_context
from storefront.application.schemas import Caller
from storefront.core_settings import get_settings
from storefront.infrastructure.auth import decode_access_token
from storefront.infrastructure.gateways import build_checkout_gateway, build_messaging_gateway

BEARER_PREFIX = "Bearer "

def get_caller(request: Request) -> Optional[Caller]:
    """Caller identity from the bearer token, or None; services decide whether that is an error."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    token_data = decode_access_token(auth_header[len(BEARER_PREFIX):])
    if not token_data or not token_data.get("sub"):
        return None
    caller = Caller(uid=str(token_data["sub"]), role=token_data.get("role"))
    set_request_context(user_id=caller.uid)
    return caller

def caller_id(caller: Optional[Caller]) -> Optional[str]:
    return caller.uid if caller else None

@lru_cache
def get_messaging_gateway():
    return build_messaging_gateway(get_settings())

@lru_cache
def get_checkout_gateway():
    return build_checkout_gateway(get_settings())

def get_app_url() -> str:
    return get_settings().APP_URL
