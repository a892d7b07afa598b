"""
Shared fixtures for the Listkeeper test suite.

NOTE: pytest is listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile
from unittest.mock import MagicMock

import pytest
from flask import Flask

from listkeeper import Listkeeper
from listkeeper.core.database import db


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="listkeeper-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Flask app with Listkeeper registered on a throwaway SQLite database."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///" + os.path.join(tmp_db_dir, "subscriptions.db")
    app.config["APP_BASE_URL"] = "http://localhost:8000"
    app.config["EMAIL_PROVIDER"] = "resend"
    app.config["RESEND_API_KEY"] = "re_test_fake_key_123"
    app.config["EMAIL_ADDRESS"] = "newsletter@example.com"
    app.config["EMAIL_BRAND_NAME"] = "TestBrand"
    app.config["OUTBOX_MAX_ATTEMPTS"] = 3
    app.config["SUBSCRIPTION_TOKEN_MAX_AGE_HOURS"] = None

    Listkeeper(app)
    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def fake_email(app):
    """Swap the real email provider for a mock that accepts everything."""
    svc = MagicMock()
    app.extensions["listkeeper"].email_service = svc
    return svc


@pytest.fixture
def client(app, fake_email):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["listkeeper"].store
