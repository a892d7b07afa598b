"""
Critical tests for the Listkeeper starter template.
Run with: pytest tests/test_critical.py -v
"""

import os
import sys
import pytest

# Add parent directory to path so we can import app
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Create application for testing."""
    monkeypatch.setenv('DATABASE_URL', 'sqlite:///' + str(tmp_path / 'subscriptions.db'))
    sys.modules.pop('config', None)
    sys.modules.pop('app', None)
    from app import app
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def test_app_starts(app):
    """App should start with Listkeeper registered."""
    assert 'listkeeper' in app.extensions


def test_health_endpoint(client):
    """Health endpoint should return 200."""
    response = client.get('/health_check')
    assert response.status_code == 200
    assert response.data == b''


def test_subscribe_rejects_empty_body(client):
    """An empty form is a client error."""
    response = client.post('/subscriptions', data={})
    assert response.status_code == 400
