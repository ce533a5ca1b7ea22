"""
Message Bus

Routes booking commands to their handlers and domain events to their
subscribers. Views and tasks talk to the booking core only through
``handle_command``.
"""

from typing import Any, Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent
from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Any], Any]
EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Commands: exactly one handler per command type
    Events: any number of subscribers per event type, in registration order
    """

    def __init__(self):
        self._command_handlers: Dict[Type, CommandHandler] = {}
        self._event_handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_command_handler(self, command_type: Type, handler: CommandHandler):
        if command_type in self._command_handlers:
            raise ValueError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler
        logger.debug("Command handler registered", extra={"command": command_type.__name__})

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """Subscribe a handler; subscribing the same callable twice is ignored"""
        subscribers = self._event_handlers.setdefault(event_type, [])
        if handler in subscribers:
            return
        subscribers.append(handler)
        logger.debug("Event handler registered", extra={"domain_event": event_type.__name__})

    def has_command_handler(self, command_type: Type) -> bool:
        return command_type in self._command_handlers

    def handle_command(self, command: Any) -> Any:
        """
        Run the handler registered for ``type(command)`` and return its result.

        A DomainError is an expected rejection: it is logged at INFO and
        re-raised for the caller to render. Any other exception is logged
        with its traceback and re-raised.
        """
        name = type(command).__name__
        handler = self._command_handlers.get(type(command))
        if handler is None:
            raise ValueError(f"No handler registered for command {name}")

        logger.info("Handling %s", name, extra={"command": name})
        try:
            result = handler(command)
        except DomainError as exc:
            logger.info(
                "%s rejected: %s", name, exc.message,
                extra={"command": name, "error_code": exc.code},
            )
            raise
        except Exception:
            logger.exception("%s failed", name, extra={"command": name})
            raise
        return result

    def publish_events(self, events: List[DomainEvent]):
        """
        Deliver events to their subscribers.

        Events are published after commit, so a failing subscriber is logged
        and skipped; it never undoes the command or blocks other subscribers.
        """
        for event in events:
            subscribers = self._event_handlers.get(type(event), [])
            if not subscribers:
                logger.debug("No subscribers for %s", event.event_type)
                continue

            for handler in subscribers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "Event handler %s failed for %s %s",
                        getattr(handler, "__name__", repr(handler)),
                        event.event_type,
                        event.event_id,
                    )


message_bus = MessageBus()
