"""
Listkeeper - A Flask Mailing List Extension
===========================================

Double opt-in mailing list for Flask apps:
- POST /subscriptions stores a pending subscriber and emails a confirmation link
- GET /subscriptions/confirm redeems the link
- GET /health_check liveness probe
- `flask outbox drain` retries confirmation emails that failed to send

Usage:
    from flask import Flask
    from listkeeper import Listkeeper

    app = Flask(__name__)
    Listkeeper(app)
"""

import os
import logging

import click
from flask import current_app
from flask.cli import AppGroup
from flask_cors import CORS

from .core.config import Config
from .core.database import Database
from .core.logging_service import configure_logging
from .modules.email.email_service import email_service
from .modules.ops import ops_health_bp
from .modules.subscribers import OutboxDispatcher, SubscriptionStore, subscribers_bp

__version__ = '0.1.0'
__author__ = 'Laurence Stephan'

logger = logging.getLogger(__name__)

outbox_cli = AppGroup('outbox', help='Confirmation email outbox.')


@outbox_cli.command('drain')
@click.option('--limit', default=100, show_default=True, help='Maximum messages to send.')
def drain_outbox_command(limit):
    """Retry pending confirmation emails."""
    dispatcher = current_app.extensions['listkeeper'].outbox_dispatcher(current_app)
    counts = dispatcher.drain(limit=limit)
    click.echo(f"sent={counts['sent']} failed={counts['failed']} skipped={counts['skipped']}")


class Listkeeper:
    """
    Flask extension wiring config, database, email and blueprints together.

    Options (second constructor argument):
        features: {'ops': bool} - register the /health_check blueprint (default True)
    """

    def __init__(self, app=None, config=None):
        self._config = config or {}
        self._registered_modules = []
        self.store = None
        self.email_service = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._apply_default_config(app)
        configure_logging(app)

        Database.init_app(app)
        self.store = SubscriptionStore(
            token_max_age_hours=app.config['SUBSCRIPTION_TOKEN_MAX_AGE_HOURS']
        )

        email_service.init_app(app)
        self.email_service = email_service

        self._register_blueprints(app)
        self._setup_cors(app)
        app.cli.add_command(outbox_cli)

        app.extensions['listkeeper'] = self
        logger.info(f"Listkeeper initialized with modules: {', '.join(self._registered_modules)}")

    def _apply_default_config(self, app):
        """Fill in any setting the host app has not set itself"""
        if 'SQLALCHEMY_DATABASE_URI' not in app.config:
            db_dir = app.config.get('DB_DIR') or Config.DB_DIR
            app.config['SQLALCHEMY_DATABASE_URI'] = (
                os.getenv('DATABASE_URL') or 'sqlite:///' + os.path.join(db_dir, 'subscriptions.db')
            )

        for key, value in Config.as_dict().items():
            app.config.setdefault(key, value)

    def _register_blueprints(self, app):
        features = self._config.get('features', {})

        app.register_blueprint(subscribers_bp)
        self._registered_modules.append('subscribers')

        if features.get('ops', True):
            app.register_blueprint(ops_health_bp)
            self._registered_modules.append('ops')

    def _setup_cors(self, app):
        origins = app.config.get('CORS_ORIGINS')
        if origins:
            CORS(app, resources={r"/subscriptions.*": {"origins": origins}})
            logger.info(f"CORS enabled for /subscriptions from: {', '.join(origins)}")

    def outbox_dispatcher(self, app):
        return OutboxDispatcher(
            store=self.store,
            email_service=self.email_service,
            base_url=app.config['APP_BASE_URL'],
            max_attempts=app.config['OUTBOX_MAX_ATTEMPTS'],
        )

    def get_registered_modules(self):
        return list(self._registered_modules)


__all__ = ['Listkeeper']
