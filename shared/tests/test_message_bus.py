from dataclasses import dataclass

import pytest
from django.db import OperationalError
from rest_framework.exceptions import ValidationError

from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent
from shared.domain.exceptions import CapacityExceeded, DateBlackedOut
from shared.infrastructure.exception_handler import domain_exception_handler


@dataclass(kw_only=True)
class Pinged(DomainEvent):
    target: str


@dataclass
class Ping:
    target: str


def test_command_routed_to_single_handler():
    bus = MessageBus()
    bus.register_command_handler(Ping, lambda command: f"pong {command.target}")

    assert bus.handle_command(Ping("planner")) == "pong planner"
    with pytest.raises(ValueError):
        bus.register_command_handler(Ping, lambda command: None)


def test_unregistered_command_raises():
    with pytest.raises(ValueError):
        MessageBus().handle_command(Ping("nobody"))


def test_domain_errors_propagate_to_caller():
    bus = MessageBus()

    def handler(command):
        raise CapacityExceeded()

    bus.register_command_handler(Ping, handler)

    with pytest.raises(CapacityExceeded):
        bus.handle_command(Ping("planner"))


def test_failing_event_handler_does_not_stop_others():
    bus = MessageBus()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    bus.register_event_handler(Pinged, broken)
    bus.register_event_handler(Pinged, lambda event: seen.append(event.target))
    bus.register_event_handler(Pinged, broken)

    bus.publish_events([Pinged(target="client")])

    assert seen == ["client"]


def test_exception_handler_renders_domain_errors():
    response = domain_exception_handler(DateBlackedOut("holiday"), {})

    assert response.status_code == 409
    assert response.data == {"code": "blackout", "detail": "holiday"}


def test_exception_handler_maps_storage_failures_to_503():
    response = domain_exception_handler(OperationalError("disk full"), {"view": None})

    assert response.status_code == 503
    assert response.data["code"] == "storage_unavailable"


def test_exception_handler_falls_back_to_drf():
    response = domain_exception_handler(ValidationError({"date": ["required"]}), {})

    assert response.status_code == 400
    assert response.data == {"date": ["required"]}
