"""
Subscription Workflows
======================

register_subscriber: validate -> persist pending subscriber + token -> email link
confirm_subscription: redeem token -> mark subscriber confirmed

Lower-layer errors are translated into WorkflowError subclasses so the HTTP
boundary never sees store or provider details.
"""

from urllib.parse import urlencode

from listkeeper.core.logging_service import LoggingService
from listkeeper.modules.email.email_service import SendError
from .domain import NewSubscriber, ValidationError
from .store import StoreError, StoreUnavailable, TokenExpired, TokenNotFound

CONFIRM_PATH = '/subscriptions/confirm'


class WorkflowError(Exception):
    """Base class for workflow outcomes other than success"""


class InvalidInput(WorkflowError):
    pass


class PersistenceFailed(WorkflowError):
    pass


class NotificationFailed(WorkflowError):
    pass


class InvalidToken(WorkflowError):
    pass


def build_confirmation_link(base_url, token):
    """Embed the token as a query parameter on the confirmation endpoint"""
    return f"{base_url.rstrip('/')}{CONFIRM_PATH}?{urlencode({'subscription_token': token})}"


def register_subscriber(email, name, store, email_service, base_url, max_attempts=5):
    """
    Run the subscribe use case for one raw (email, name) submission.

    Returns:
        str: the new subscriber id

    Raises:
        InvalidInput, PersistenceFailed, NotificationFailed
    """
    try:
        new_subscriber = NewSubscriber.parse(email=email, name=name)
    except ValidationError as e:
        LoggingService.info('subscribers', 'Rejected subscription input', {
            'reason': type(e).__name__,
            'detail': str(e),
        })
        raise InvalidInput(str(e)) from e

    try:
        pending = store.create_pending(new_subscriber)
    except StoreError as e:
        LoggingService.error('subscribers', 'Failed to store new subscriber', {
            'subscriber_email': new_subscriber.email.value,
            'reason': type(e).__name__,
        })
        raise PersistenceFailed(str(e)) from e

    link = build_confirmation_link(base_url, pending.token)

    try:
        email_service.send_confirmation(new_subscriber.email, link, name=new_subscriber.name.value)
    except SendError as e:
        LoggingService.error('subscribers', 'Failed to send confirmation email', {
            'subscriber_email': new_subscriber.email.value,
            'reason': type(e).__name__,
            'detail': str(e),
        })
        _record_failure(store, pending.outbox_id, e, max_attempts)
        raise NotificationFailed(str(e)) from e

    try:
        store.mark_outbox_sent(pending.outbox_id)
    except StoreError as e:
        # Worst case the dispatcher sends a second copy of the same link
        LoggingService.warning('subscribers', 'Email sent but outbox row not updated', {
            'subscriber_email': new_subscriber.email.value,
            'outbox_id': pending.outbox_id,
            'reason': type(e).__name__,
        })

    LoggingService.info('subscribers', 'New subscriber pending confirmation', {
        'subscriber_email': new_subscriber.email.value,
        'subscriber_id': pending.subscriber_id,
    })
    return pending.subscriber_id


def _record_failure(store, outbox_id, error, max_attempts):
    try:
        store.record_outbox_failure(outbox_id, error, max_attempts)
    except StoreError as e:
        LoggingService.error('subscribers', 'Could not record failed email attempt', {
            'outbox_id': outbox_id,
            'reason': type(e).__name__,
        })


def confirm_subscription(token, store):
    """
    Run the confirm use case. First-time and repeat confirmations look the same.

    Raises:
        InvalidToken, PersistenceFailed
    """
    if not token or not token.strip():
        raise InvalidToken("Missing subscription token")

    try:
        subscriber_id = store.confirm(token.strip())
    except (TokenNotFound, TokenExpired) as e:
        LoggingService.info('subscribers', 'Rejected confirmation link', {'reason': type(e).__name__})
        raise InvalidToken("Invalid or expired confirmation link") from e
    except StoreUnavailable as e:
        LoggingService.error('subscribers', 'Store unavailable during confirmation', {'detail': str(e)})
        raise PersistenceFailed(str(e)) from e
    except StoreError as e:
        LoggingService.error('subscribers', 'Failed to confirm subscriber', {'reason': type(e).__name__})
        raise PersistenceFailed(str(e)) from e

    LoggingService.info('subscribers', 'Subscriber confirmed', {'subscriber_id': subscriber_id})
    return subscriber_id
