# mlm_system/events/handlers.py
"""
Default event handlers: audit log lines for money-moving events.
"""
import logging
from typing import Dict, Any

from mlm_system.events.event_bus import eventBus, MLMEvents

logger = logging.getLogger("mlm_system.audit")


def handle_commission_paid(data: Dict[str, Any]):
    logger.info(
        f"AUDIT commission level={data.get('level')} user={data.get('userId')} "
        f"amount={data.get('amount')} deposit={data.get('depositId')}"
    )


def handle_commission_held(data: Dict[str, Any]):
    logger.info(
        f"AUDIT held commission user={data.get('userId')} amount={data.get('amount')} "
        f"heldBalance={data.get('heldBalance')}"
    )


def handle_plan_upgraded(data: Dict[str, Any]):
    logger.info(f"AUDIT auto-upgrade user={data.get('userId')} plan={data.get('planName')} price={data.get('price')}")


def handle_withdrawal_paid(data: Dict[str, Any]):
    logger.info(f"AUDIT withdrawal paid id={data.get('withdrawalId')} user={data.get('userId')} final={data.get('finalAmount')}")


def handle_transfer_approved(data: Dict[str, Any]):
    logger.info(
        f"AUDIT transfer id={data.get('transferId')} {data.get('senderId')} -> {data.get('receiverId')} "
        f"amount={data.get('amount')}"
    )


def handle_wallet_adjusted(data: Dict[str, Any]):
    logger.info(f"AUDIT manual adjustment user={data.get('userId')} amount={data.get('amount')} admin={data.get('adminId')}")


DEFAULT_HANDLERS = {
    MLMEvents.COMMISSION_PAID: handle_commission_paid,
    MLMEvents.COMMISSION_HELD: handle_commission_held,
    MLMEvents.PLAN_UPGRADED: handle_plan_upgraded,
    MLMEvents.WITHDRAWAL_PAID: handle_withdrawal_paid,
    MLMEvents.TRANSFER_APPROVED: handle_transfer_approved,
    MLMEvents.WALLET_ADJUSTED: handle_wallet_adjusted,
}


def setup_event_handlers():
    """Register default handlers. Safe to call more than once."""
    for eventName, handler in DEFAULT_HANDLERS.items():
        eventBus.subscribe(eventName, handler)
    logger.info(f"Registered {len(DEFAULT_HANDLERS)} audit event handlers")
