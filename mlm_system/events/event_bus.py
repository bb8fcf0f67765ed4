# mlm_system/events/event_bus.py
"""
Event bus for decoupled communication between components.
Handlers run synchronously inside the emitting transition; a failing
handler is logged and never breaks the caller.
"""
from typing import Dict, List, Callable, Any
import logging

logger = logging.getLogger(__name__)


class EventBus:
    """
    Simple in-process event bus.
    External transports (email, push) attach by subscribing.
    """

    _instance = None
    _handlers: Dict[str, List[Callable]] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._handlers = {}
        return cls._instance

    def subscribe(self, eventName: str, handler: Callable):
        """Subscribe handler to event."""
        if eventName not in self._handlers:
            self._handlers[eventName] = []

        if handler in self._handlers[eventName]:
            return

        self._handlers[eventName].append(handler)
        logger.debug(f"Handler {handler.__name__} subscribed to {eventName}")

    def unsubscribe(self, eventName: str, handler: Callable):
        """Unsubscribe handler from event."""
        if eventName in self._handlers and handler in self._handlers[eventName]:
            self._handlers[eventName].remove(handler)
            logger.debug(f"Handler {handler.__name__} unsubscribed from {eventName}")

    def emit(self, eventName: str, data: Dict[str, Any]):
        """Emit event to all subscribers."""
        if eventName not in self._handlers:
            return

        logger.debug(f"Emitting event {eventName} with data: {data}")

        for handler in list(self._handlers[eventName]):
            try:
                handler(data)
            except Exception as e:
                logger.error(f"Error in handler {handler.__name__} for event {eventName}: {e}")

    def handlerCount(self, eventName: str) -> int:
        return len(self._handlers.get(eventName, []))

    def clear(self):
        """Clear all event handlers."""
        self._handlers.clear()


# Global event bus instance
eventBus = EventBus()


# Predefined events
class MLMEvents:
    """Standard ledger events."""

    DEPOSIT_CREATED = "deposit.created"
    DEPOSIT_APPROVED = "deposit.approved"
    DEPOSIT_REJECTED = "deposit.rejected"

    COMMISSION_PAID = "commission.paid"
    COMMISSION_HELD = "commission.held"

    PLAN_PURCHASED = "plan.purchased"
    PLAN_UPGRADED = "plan.upgraded"
    PLAN_EXPIRED = "plan.expired"

    WITHDRAWAL_REQUESTED = "withdrawal.requested"
    WITHDRAWAL_MATCHED = "withdrawal.matched"
    WITHDRAWAL_PAID = "withdrawal.paid"
    WITHDRAWAL_REJECTED = "withdrawal.rejected"

    TRANSFER_REQUESTED = "transfer.requested"
    TRANSFER_APPROVED = "transfer.approved"
    TRANSFER_REJECTED = "transfer.rejected"

    USER_REGISTERED = "user.registered"
    WALLET_ADJUSTED = "wallet.adjusted"

    NOTIFICATION_CREATED = "notification.created"
