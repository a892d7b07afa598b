"""
Workflow tests
==============

The store and email service are mocks, so these tests pin down the ordering
and error translation of the workflows without a database.
"""

from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest

from listkeeper.modules.email.email_service import ProviderRejected, ProviderUnavailable
from listkeeper.modules.subscribers.store import (
    PendingSubscription,
    StoreConflict,
    StoreError,
    StoreUnavailable,
    TokenExpired,
    TokenNotFound,
)
from listkeeper.modules.subscribers.workflows import (
    InvalidInput,
    InvalidToken,
    NotificationFailed,
    PersistenceFailed,
    build_confirmation_link,
    confirm_subscription,
    register_subscriber,
)

BASE_URL = "http://localhost:8000"


@pytest.fixture
def store():
    store = MagicMock()
    store.create_pending.return_value = PendingSubscription("sub-1", "tok-1", 7)
    store.confirm.return_value = "sub-1"
    return store


@pytest.fixture
def mailer():
    return MagicMock()


def _register(store, mailer, email="khar@gmail.com", name="le guin"):
    return register_subscriber(email, name, store, mailer, BASE_URL, max_attempts=3)


# ---------------------------------------------------------------------------
# Confirmation link
# ---------------------------------------------------------------------------

def test_confirmation_link_embeds_token_as_query_parameter():
    link = build_confirmation_link("http://localhost:8000/", "a+b/c=")
    parsed = urlparse(link)
    assert parsed.path == "/subscriptions/confirm"
    assert parse_qs(parsed.query) == {"subscription_token": ["a+b/c="]}


# ---------------------------------------------------------------------------
# register_subscriber
# ---------------------------------------------------------------------------

def test_register_happy_path(store, mailer):
    assert _register(store, mailer) == "sub-1"

    new_subscriber = store.create_pending.call_args.args[0]
    assert new_subscriber.email.value == "khar@gmail.com"
    assert new_subscriber.name.value == "le guin"

    mailer.send_confirmation.assert_called_once()
    to, link = mailer.send_confirmation.call_args.args
    assert str(to) == "khar@gmail.com"
    assert link == f"{BASE_URL}/subscriptions/confirm?subscription_token=tok-1"
    assert mailer.send_confirmation.call_args.kwargs["name"] == "le guin"

    store.mark_outbox_sent.assert_called_once_with(7)
    store.record_outbox_failure.assert_not_called()


@pytest.mark.parametrize("email,name", [
    ("", "le guin"),
    ("ursuladomain.com", "le guin"),
    ("khar@gmail.com", ""),
    ("khar@gmail.com", "   "),
    ("khar@gmail.com", "<script>"),
    (None, None),
])
def test_register_invalid_input_touches_nothing(store, mailer, email, name):
    with pytest.raises(InvalidInput):
        _register(store, mailer, email=email, name=name)

    store.create_pending.assert_not_called()
    mailer.send_confirmation.assert_not_called()


@pytest.mark.parametrize("error", [StoreUnavailable("down"), StoreConflict("dup"), StoreError("?")])
def test_register_persistence_failure_sends_no_email(store, mailer, error):
    store.create_pending.side_effect = error

    with pytest.raises(PersistenceFailed):
        _register(store, mailer)

    mailer.send_confirmation.assert_not_called()


@pytest.mark.parametrize("error", [ProviderUnavailable("timeout"), ProviderRejected("bad recipient")])
def test_register_notification_failure_is_recorded_on_outbox(store, mailer, error):
    mailer.send_confirmation.side_effect = error

    with pytest.raises(NotificationFailed):
        _register(store, mailer)

    store.record_outbox_failure.assert_called_once_with(7, error, 3)
    store.mark_outbox_sent.assert_not_called()


def test_register_notification_failure_survives_outbox_write_error(store, mailer):
    mailer.send_confirmation.side_effect = ProviderUnavailable("timeout")
    store.record_outbox_failure.side_effect = StoreUnavailable("down")

    with pytest.raises(NotificationFailed):
        _register(store, mailer)


def test_register_succeeds_when_only_outbox_bookkeeping_fails(store, mailer):
    store.mark_outbox_sent.side_effect = StoreUnavailable("down")
    assert _register(store, mailer) == "sub-1"


# ---------------------------------------------------------------------------
# confirm_subscription
# ---------------------------------------------------------------------------

def test_confirm_happy_path(store):
    assert confirm_subscription("tok-1", store) == "sub-1"
    store.confirm.assert_called_once_with("tok-1")


@pytest.mark.parametrize("token", [None, "", "   "])
def test_confirm_missing_token(store, token):
    with pytest.raises(InvalidToken):
        confirm_subscription(token, store)
    store.confirm.assert_not_called()


@pytest.mark.parametrize("error", [TokenNotFound("nope"), TokenExpired("old")])
def test_confirm_unknown_or_expired_token(store, error):
    store.confirm.side_effect = error
    with pytest.raises(InvalidToken):
        confirm_subscription("tok-1", store)


def test_confirm_store_unavailable(store):
    store.confirm.side_effect = StoreUnavailable("down")
    with pytest.raises(PersistenceFailed):
        confirm_subscription("tok-1", store)
