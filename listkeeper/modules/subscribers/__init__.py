"""
Subscribers Module
==================

Provides:
- POST /subscriptions -- join the mailing list (double opt-in)
- GET /subscriptions/confirm -- redeem the emailed confirmation link
- SubscriptionStore, register_subscriber, confirm_subscription for other modules
- OutboxDispatcher for retrying confirmation emails
"""

from flask import Blueprint

subscribers_bp = Blueprint(
    'subscribers',
    __name__,
    url_prefix='/subscriptions',
)

from . import routes  # noqa: E402,F401
from .store import SubscriptionStore  # noqa: E402
from .outbox import OutboxDispatcher  # noqa: E402
from .workflows import confirm_subscription, register_subscriber  # noqa: E402

__all__ = [
    'subscribers_bp',
    'SubscriptionStore',
    'OutboxDispatcher',
    'confirm_subscription',
    'register_subscriber',
]
