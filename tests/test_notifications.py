import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import gateway_error
from storefront.application.notifications import NotificationService
from storefront.application.schemas import SendWhatsAppRequest
from storefront.domain.errors import (
    FailedPrecondition,
    Internal,
    InvalidArgument,
    ResourceExhausted,
    Unauthenticated,
)
from storefront.domain.models import Notification

def whatsapp(to="37001234", template="order_confirmation", message="Kòmand ou konfime"):
    data = {"message": message, "orderId": "abc"} if message is not None else None
    return SendWhatsAppRequest(to=to, template=template, data=data)

@pytest.fixture
def service(db_session, messaging_gateway, clock):
    return NotificationService(db_session, messaging_gateway, clock)

def audit_rows(db_session):
    return db_session.scalars(select(Notification).order_by(Notification.id)).all()

def test_successful_send_is_audited(service, db_session, messaging_gateway):
    result = service.send_whatsapp("user-1", whatsapp())

    assert result.success is True
    assert result.status == "sent"
    assert result.provider_reference == result.twilio_sid
    assert messaging_gateway.sent == [("+50937001234", "Kòmand ou konfime")]

    [row] = audit_rows(db_session)
    assert row.status == "sent"
    assert row.channel == "whatsapp"
    assert row.to == "+50937001234"
    assert row.provider_sid == result.provider_reference
    assert row.payload["orderId"] == "abc"
    assert row.error is None

def test_requires_caller(service):
    with pytest.raises(Unauthenticated):
        service.send_whatsapp(None, whatsapp())

@pytest.mark.parametrize("request_kwargs", [
    {"to": None},
    {"to": "  "},
    {"template": None},
    {"message": None},
    {"message": ""},
])
def test_missing_fields_are_rejected(service, request_kwargs, messaging_gateway):
    with pytest.raises(InvalidArgument):
        service.send_whatsapp("user-1", whatsapp(**request_kwargs))
    assert messaging_gateway.sent == []

def test_eleventh_message_within_a_minute_is_rejected(service, clock, messaging_gateway):
    for _ in range(10):
        service.send_whatsapp("user-1", whatsapp())
        clock.advance(1)

    with pytest.raises(ResourceExhausted):
        service.send_whatsapp("user-1", whatsapp())
    assert len(messaging_gateway.sent) == 10

def test_rate_limit_is_per_user_and_window_slides(service, clock):
    for _ in range(10):
        service.send_whatsapp("user-1", whatsapp())

    service.send_whatsapp("user-2", whatsapp())

    clock.advance(61)
    assert service.send_whatsapp("user-1", whatsapp()).success

def test_failed_sends_count_towards_the_limit(service, messaging_gateway):
    messaging_gateway.error = gateway_error("Service unavailable", code=30001)
    for _ in range(10):
        with pytest.raises(Internal):
            service.send_whatsapp("user-1", whatsapp())

    messaging_gateway.error = None
    with pytest.raises(ResourceExhausted):
        service.send_whatsapp("user-1", whatsapp())

def test_unconfigured_gateway_fails_before_sending(db_session, clock):
    service = NotificationService(db_session, None, clock)
    with pytest.raises(FailedPrecondition):
        service.send_whatsapp("user-1", whatsapp())
    assert audit_rows(db_session) == []

def test_gateway_failure_is_audited_and_raised(service, db_session, messaging_gateway):
    messaging_gateway.error = gateway_error("Queue overflow", code=30001)

    with pytest.raises(Internal) as excinfo:
        service.send_whatsapp("user-1", whatsapp())

    assert "Queue overflow" in excinfo.value.message
    [row] = audit_rows(db_session)
    assert row.status == "failed"
    assert row.error == "Queue overflow"
    assert row.provider_sid is None

@pytest.mark.parametrize("code, expected", [
    (21211, InvalidArgument),
    (21608, FailedPrecondition),
    (20003, FailedPrecondition),
])
def test_provider_codes_map_to_specific_errors(service, messaging_gateway, code, expected):
    messaging_gateway.error = gateway_error("provider says no", code=code)
    with pytest.raises(expected):
        service.send_whatsapp("user-1", whatsapp())

def test_audit_failure_does_not_mask_success(service, db_session, messaging_gateway, monkeypatch):
    def broken_commit():
        raise OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", broken_commit)

    result = service.send_whatsapp("user-1", whatsapp())

    assert result.success is True
    assert len(messaging_gateway.sent) == 1

def test_audit_failure_does_not_replace_send_error(service, db_session, messaging_gateway, monkeypatch):
    messaging_gateway.error = gateway_error("Queue overflow", code=30001)

    def broken_commit():
        raise OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", broken_commit)

    with pytest.raises(Internal):
        service.send_whatsapp("user-1", whatsapp())
