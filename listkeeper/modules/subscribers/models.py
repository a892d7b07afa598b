"""
Subscribers Models
==================

Database schema for subscribers, their confirmation tokens, and the outbox
of confirmation emails still waiting to be delivered.
"""

import uuid
from datetime import datetime, timezone

from listkeeper.core.database import db

STATUS_PENDING = 'pending_confirmation'
STATUS_CONFIRMED = 'confirmed'

OUTBOX_PENDING = 'pending'
OUTBOX_SENT = 'sent'
OUTBOX_FAILED = 'failed'

KIND_CONFIRMATION = 'confirmation'


def utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return str(uuid.uuid4())


class Subscriber(db.Model):
    __tablename__ = 'subscriptions'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(256), nullable=False)
    subscribed_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    status = db.Column(db.String(32), nullable=False, default=STATUS_PENDING)
    confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'subscribed_at': self.subscribed_at.isoformat() if self.subscribed_at else None,
            'status': self.status,
            'confirmed_at': self.confirmed_at.isoformat() if self.confirmed_at else None,
        }

    def __repr__(self):
        return f"<Subscriber {self.email} ({self.status})>"


class SubscriptionToken(db.Model):
    __tablename__ = 'subscription_tokens'

    subscription_token = db.Column(db.String(64), primary_key=True)
    subscriber_id = db.Column(
        db.String(36), db.ForeignKey('subscriptions.id'), nullable=False, index=True
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        # The token itself is a credential
        return f"<SubscriptionToken for {self.subscriber_id}>"


class OutboxMessage(db.Model):
    __tablename__ = 'outbox_messages'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    kind = db.Column(db.String(32), nullable=False, default=KIND_CONFIRMATION)
    subscriber_id = db.Column(
        db.String(36), db.ForeignKey('subscriptions.id'), nullable=False, index=True
    )
    subscription_token = db.Column(
        db.String(64), db.ForeignKey('subscription_tokens.subscription_token'), nullable=False
    )
    status = db.Column(db.String(16), nullable=False, default=OUTBOX_PENDING, index=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    sent_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<OutboxMessage {self.id} {self.kind} ({self.status}, {self.attempts} attempts)>"
