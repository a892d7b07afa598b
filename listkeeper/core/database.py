import os
import logging
from contextlib import contextmanager

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import make_url

logger = logging.getLogger(__name__)

db = SQLAlchemy()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores REFERENCES clauses unless asked per connection"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:

    @staticmethod
    def engine_options(uri, acquire_timeout):
        """
        Build SQLALCHEMY_ENGINE_OPTIONS for the given database URI.
        Bound parameters are kept out of exception messages, since they carry
        subscription tokens. In-memory SQLite runs on a static pool, which has
        no acquisition timeout.
        """
        options = {'hide_parameters': True}
        url = make_url(uri)
        if url.get_backend_name() == 'sqlite' and url.database in (None, '', ':memory:'):
            return options

        options['pool_timeout'] = acquire_timeout
        if url.get_backend_name() != 'sqlite':
            options['pool_pre_ping'] = True
        return options

    @staticmethod
    def ensure_sqlite_dir(uri):
        """Create the parent directory of a file-backed SQLite database"""
        url = make_url(uri)
        if url.get_backend_name() != 'sqlite' or url.database in (None, '', ':memory:'):
            return
        directory = os.path.dirname(os.path.abspath(url.database))
        os.makedirs(directory, exist_ok=True)

    @staticmethod
    def init_app(app):
        """Bind the shared SQLAlchemy instance to app and create missing tables"""
        uri = app.config['SQLALCHEMY_DATABASE_URI']
        options = dict(Database.engine_options(uri, app.config['DB_ACQUIRE_TIMEOUT']))
        options.update(app.config.get('SQLALCHEMY_ENGINE_OPTIONS') or {})
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = options

        Database.ensure_sqlite_dir(uri)
        db.init_app(app)

        with app.app_context():
            if db.engine.dialect.name == 'sqlite':
                event.listen(db.engine, 'connect', _enable_sqlite_foreign_keys)
            db.create_all()
            logger.info(f"Database tables created/verified ({db.engine.dialect.name})")

    @staticmethod
    @contextmanager
    def transaction():
        """
        Run a block as one all-or-nothing unit on the request's session.
        Commits on success; rolls back and re-raises on any exception.
        """
        try:
            yield db.session
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
