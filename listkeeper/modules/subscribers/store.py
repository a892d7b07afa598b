"""
Subscription Store
==================

Persistence for the subscribe/confirm workflows. Each public method is one
transaction: it either commits completely or leaves nothing behind.

Errors:
- StoreUnavailable: connectivity loss, pool acquisition timeout, locked DB
- StoreConflict: the email is already on the list
- TokenNotFound: confirm() was given a token that was never issued
- TokenExpired: confirm() was given a token older than the configured max age
"""

import logging
from collections import namedtuple
from datetime import timedelta, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)

from listkeeper.core.database import Database, db
from .models import (
    OUTBOX_FAILED,
    OUTBOX_PENDING,
    OUTBOX_SENT,
    STATUS_CONFIRMED,
    STATUS_PENDING,
    OutboxMessage,
    Subscriber,
    SubscriptionToken,
    utcnow,
)
from .tokens import issue_token

logger = logging.getLogger(__name__)

_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)

PendingSubscription = namedtuple('PendingSubscription', ['subscriber_id', 'token', 'outbox_id'])


class StoreError(Exception):
    """Base class for persistence failures"""


class StoreUnavailable(StoreError):
    pass


class StoreConflict(StoreError):
    pass


class TokenNotFound(StoreError):
    pass


class TokenExpired(StoreError):
    pass


def _translate(error):
    if isinstance(error, IntegrityError):
        return StoreConflict("A subscriber with this email already exists")
    if isinstance(error, _UNAVAILABLE_ERRORS):
        return StoreUnavailable(f"Database unavailable: {type(error).__name__}")
    return StoreError(f"Database error: {type(error).__name__}")


def _as_utc(value):
    # SQLite hands timestamps back without tzinfo
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SubscriptionStore:

    def __init__(self, token_max_age_hours=None):
        self.token_max_age_hours = token_max_age_hours

    # ===================
    # WORKFLOW OPERATIONS
    # ===================

    def create_pending(self, new_subscriber):
        """
        Insert a pending subscriber, its confirmation token and the outbox row
        for its confirmation email as a single unit.

        Returns:
            PendingSubscription(subscriber_id, token, outbox_id)
        """
        token = issue_token()
        try:
            with Database.transaction() as session:
                subscriber = Subscriber(
                    email=new_subscriber.email.value,
                    name=new_subscriber.name.value,
                    subscribed_at=utcnow(),
                    status=STATUS_PENDING,
                )
                session.add(subscriber)
                session.flush()

                session.add(SubscriptionToken(
                    subscription_token=token,
                    subscriber_id=subscriber.id,
                ))
                session.flush()

                message = OutboxMessage(
                    subscriber_id=subscriber.id,
                    subscription_token=token,
                    status=OUTBOX_PENDING,
                    attempts=0,
                )
                session.add(message)
                session.flush()

                result = PendingSubscription(subscriber.id, token, message.id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save pending subscriber {new_subscriber.email}: {type(e).__name__}")
            raise _translate(e) from e

        logger.info(f"Saved pending subscriber {new_subscriber.email} ({result.subscriber_id})")
        return result

    def confirm(self, token):
        """
        Mark the subscriber owning token as confirmed.
        Confirming an already confirmed subscriber succeeds without changes.

        Returns:
            str: the subscriber id
        """
        try:
            with Database.transaction() as session:
                row = session.get(SubscriptionToken, token) if token else None
                if row is None:
                    raise TokenNotFound("Unknown subscription token")
                if self._is_expired(row):
                    raise TokenExpired("Subscription token has expired")

                subscriber_id = row.subscriber_id
                session.execute(
                    update(Subscriber)
                    .where(Subscriber.id == subscriber_id)
                    .values(
                        status=STATUS_CONFIRMED,
                        confirmed_at=func.coalesce(Subscriber.confirmed_at, utcnow()),
                    )
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to confirm subscriber: {type(e).__name__}")
            raise _translate(e) from e

        logger.info(f"Confirmed subscriber {subscriber_id}")
        return subscriber_id

    def _is_expired(self, token_row):
        if not self.token_max_age_hours:
            return False
        issued = _as_utc(token_row.created_at)
        return utcnow() - issued > timedelta(hours=self.token_max_age_hours)

    # ===================
    # READ HELPERS
    # ===================

    def get_subscriber_by_email(self, email):
        """Return the subscriber with this email as a dict, or None"""
        try:
            subscriber = db.session.execute(
                select(Subscriber).where(Subscriber.email == str(email).strip().lower())
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise _translate(e) from e
        return subscriber.to_dict() if subscriber else None

    def get_tokens_for_subscriber(self, subscriber_id):
        try:
            return list(db.session.execute(
                select(SubscriptionToken.subscription_token)
                .where(SubscriptionToken.subscriber_id == subscriber_id)
            ).scalars())
        except SQLAlchemyError as e:
            raise _translate(e) from e

    def count_subscribers(self, status=None):
        query = select(func.count()).select_from(Subscriber)
        if status:
            query = query.where(Subscriber.status == status)
        try:
            return db.session.execute(query).scalar_one()
        except SQLAlchemyError as e:
            raise _translate(e) from e

    # ===================
    # OUTBOX
    # ===================

    def pending_outbox(self, limit=100, max_attempts=5):
        """Oldest-first pending outbox messages joined with their subscriber"""
        query = (
            select(OutboxMessage, Subscriber)
            .join(Subscriber, Subscriber.id == OutboxMessage.subscriber_id)
            .where(OutboxMessage.status == OUTBOX_PENDING)
            .where(OutboxMessage.attempts < max_attempts)
            .order_by(OutboxMessage.created_at, OutboxMessage.id)
            .limit(limit)
        )
        try:
            rows = db.session.execute(query).all()
        except SQLAlchemyError as e:
            raise _translate(e) from e

        return [
            {
                'id': message.id,
                'kind': message.kind,
                'subscriber_id': subscriber.id,
                'email': subscriber.email,
                'name': subscriber.name,
                'status': subscriber.status,
                'token': message.subscription_token,
                'attempts': message.attempts,
            }
            for message, subscriber in rows
        ]

    def get_outbox_message(self, outbox_id):
        try:
            message = db.session.get(OutboxMessage, outbox_id)
        except SQLAlchemyError as e:
            raise _translate(e) from e
        if message is None:
            return None
        return {
            'id': message.id,
            'kind': message.kind,
            'subscriber_id': message.subscriber_id,
            'status': message.status,
            'attempts': message.attempts,
            'last_error': message.last_error,
            'sent_at': message.sent_at,
        }

    def mark_outbox_sent(self, outbox_id):
        try:
            with Database.transaction() as session:
                session.execute(
                    update(OutboxMessage)
                    .where(OutboxMessage.id == outbox_id)
                    .values(
                        status=OUTBOX_SENT,
                        attempts=OutboxMessage.attempts + 1,
                        sent_at=utcnow(),
                        last_error=None,
                    )
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as e:
            raise _translate(e) from e

    def record_outbox_failure(self, outbox_id, error, max_attempts=5):
        """Count a failed delivery; give up on the message after max_attempts"""
        try:
            with Database.transaction() as session:
                message = session.get(OutboxMessage, outbox_id)
                if message is None:
                    return None
                message.attempts = (message.attempts or 0) + 1
                message.last_error = str(error)[:1000]
                if message.attempts >= max_attempts:
                    message.status = OUTBOX_FAILED
                status = message.status
        except SQLAlchemyError as e:
            raise _translate(e) from e
        return status
