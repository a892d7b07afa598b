"""
Outbox dispatcher tests
=======================

A registration whose confirmation email fails stays queued; draining the
outbox later delivers it.
"""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from listkeeper.modules.email.email_service import ProviderRejected, ProviderUnavailable
from listkeeper.modules.subscribers.models import OUTBOX_FAILED, OUTBOX_SENT
from listkeeper.modules.subscribers.store import StoreUnavailable


def _subscribe_while_provider_down(client, fake_email, email="khar@gmail.com"):
    fake_email.send_confirmation.side_effect = ProviderUnavailable("timeout")
    response = client.post("/subscriptions", data={"name": "le guin", "email": email})
    assert response.status_code == 500
    fake_email.send_confirmation.side_effect = None
    fake_email.send_confirmation.reset_mock()


def test_drain_delivers_queued_confirmation(app, client, store, fake_email):
    _subscribe_while_provider_down(client, fake_email)

    with app.app_context():
        queued = store.pending_outbox()[0]
        counts = app.extensions["listkeeper"].outbox_dispatcher(app).drain()

        assert counts == {"sent": 1, "failed": 0, "skipped": 0}
        message = store.get_outbox_message(queued["id"])
        assert message["status"] == OUTBOX_SENT
        assert message["attempts"] == 2

    to, link = fake_email.send_confirmation.call_args.args
    assert to == "khar@gmail.com"
    assert parse_qs(urlparse(link).query)["subscription_token"] == [queued["token"]]


def test_redelivered_link_confirms_the_subscriber(app, client, store, fake_email):
    _subscribe_while_provider_down(client, fake_email)
    with app.app_context():
        app.extensions["listkeeper"].outbox_dispatcher(app).drain()

    link = fake_email.send_confirmation.call_args.args[1]
    parsed = urlparse(link)
    assert client.get(parsed.path, query_string=parsed.query).status_code == 200

    with app.app_context():
        assert store.get_subscriber_by_email("khar@gmail.com")["status"] == "confirmed"


def test_drain_with_nothing_queued(app, client, fake_email):
    client.post("/subscriptions", data={"name": "le guin", "email": "khar@gmail.com"})
    fake_email.send_confirmation.reset_mock()

    with app.app_context():
        counts = app.extensions["listkeeper"].outbox_dispatcher(app).drain()

    assert counts == {"sent": 0, "failed": 0, "skipped": 0}
    fake_email.send_confirmation.assert_not_called()


def test_drain_gives_up_after_max_attempts(app, client, store, fake_email):
    # OUTBOX_MAX_ATTEMPTS is 3 in the test app; the request used the first one
    _subscribe_while_provider_down(client, fake_email)
    fake_email.send_confirmation.side_effect = ProviderRejected("bad recipient")

    with app.app_context():
        queued_id = store.pending_outbox()[0]["id"]
        dispatcher = app.extensions["listkeeper"].outbox_dispatcher(app)

        assert dispatcher.drain() == {"sent": 0, "failed": 1, "skipped": 0}
        assert dispatcher.drain() == {"sent": 0, "failed": 1, "skipped": 0}
        assert dispatcher.drain() == {"sent": 0, "failed": 0, "skipped": 0}

        message = store.get_outbox_message(queued_id)
        assert message["status"] == OUTBOX_FAILED
        assert message["attempts"] == 3


def test_drain_skips_subscribers_already_confirmed(app, client, store, fake_email):
    _subscribe_while_provider_down(client, fake_email)

    with app.app_context():
        queued = store.pending_outbox()[0]
        store.confirm(queued["token"])

        counts = app.extensions["listkeeper"].outbox_dispatcher(app).drain()

        assert counts == {"sent": 0, "failed": 0, "skipped": 1}
        assert store.get_outbox_message(queued["id"])["status"] == OUTBOX_SENT
    fake_email.send_confirmation.assert_not_called()


def test_drain_respects_limit(app, client, store, fake_email):
    _subscribe_while_provider_down(client, fake_email, "one@example.com")
    _subscribe_while_provider_down(client, fake_email, "two@example.com")

    with app.app_context():
        counts = app.extensions["listkeeper"].outbox_dispatcher(app).drain(limit=1)
        assert counts["sent"] == 1
        assert len(store.pending_outbox()) == 1


def test_outbox_drain_cli_command(app, client, fake_email):
    _subscribe_while_provider_down(client, fake_email)

    result = app.test_cli_runner().invoke(args=["outbox", "drain", "--limit", "10"])

    assert result.exit_code == 0, result.output
    assert "sent=1 failed=0 skipped=0" in result.output
    fake_email.send_confirmation.assert_called_once()


def test_drain_keeps_going_when_failures_cannot_be_recorded(app, client, store, fake_email):
    _subscribe_while_provider_down(client, fake_email, "one@example.com")
    _subscribe_while_provider_down(client, fake_email, "two@example.com")
    fake_email.send_confirmation.side_effect = ProviderUnavailable("timeout")

    with app.app_context():
        dispatcher = app.extensions["listkeeper"].outbox_dispatcher(app)
        with patch.object(store, "record_outbox_failure", side_effect=StoreUnavailable("locked")):
            counts = dispatcher.drain()

    assert counts == {"sent": 0, "failed": 2, "skipped": 0}
    assert fake_email.send_confirmation.call_count == 2


def test_drain_keeps_going_when_confirmed_row_cannot_be_closed(app, client, store, fake_email):
    _subscribe_while_provider_down(client, fake_email, "one@example.com")
    _subscribe_while_provider_down(client, fake_email, "two@example.com")

    with app.app_context():
        first = store.pending_outbox()[0]
        store.confirm(first["token"])
        dispatcher = app.extensions["listkeeper"].outbox_dispatcher(app)
        with patch.object(store, "mark_outbox_sent", side_effect=[StoreUnavailable("locked"), None]):
            counts = dispatcher.drain()

    assert counts == {"sent": 1, "failed": 0, "skipped": 1}
    to = fake_email.send_confirmation.call_args.args[0]
    assert to == "two@example.com"
