import os
from dotenv import load_dotenv

load_dotenv(override=True)


def _optional_float(name):
    value = os.getenv(name)
    if value in (None, ''):
        return None
    return float(value)


class Config:
    """
    Base configuration for Listkeeper.
    Every value can be overridden through environment variables (or a .env file),
    or directly in app.config before Listkeeper(app) is called.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database - SQLite under DB_DIR unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL',
        'sqlite:///' + os.path.join(DB_DIR, 'subscriptions.db')
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Seconds to wait for a pooled connection before giving up
    DB_ACQUIRE_TIMEOUT = float(os.getenv('DB_ACQUIRE_TIMEOUT', '2'))

    # Public URL the confirmation links point at
    APP_BASE_URL = os.getenv('APP_BASE_URL', 'http://localhost:8000')

    # Email settings
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'resend')
    EMAIL_ADDRESS = os.getenv('EMAIL_ADDRESS', 'onboarding@resend.dev')
    EMAIL_BRAND_NAME = os.getenv('EMAIL_BRAND_NAME', 'our newsletter')
    EMAIL_TIMEOUT = float(os.getenv('EMAIL_TIMEOUT', '60'))

    # Resend API settings
    RESEND_API_KEY = os.getenv('RESEND_API_KEY') or os.getenv('RESEND')

    # MailSlurp API settings
    MAILSLURP_API_KEY = os.getenv('MAILSLURP_API_KEY')
    MAILSLURP_INBOX_ID = os.getenv('MAILSLURP_INBOX_ID')

    # SMTP settings
    EMAIL_HOST = os.getenv('EMAIL_HOST', 'smtp.gmail.com')
    EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
    EMAIL_PASSWORD = os.getenv('EMAIL_PASSWORD')

    # Subscription settings
    # Unset means confirmation links never expire
    SUBSCRIPTION_TOKEN_MAX_AGE_HOURS = _optional_float('SUBSCRIPTION_TOKEN_MAX_AGE_HOURS')
    OUTBOX_MAX_ATTEMPTS = int(os.getenv('OUTBOX_MAX_ATTEMPTS', '5'))

    # Comma separated origins allowed to post the sign-up form cross-site
    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '').split(',') if o.strip()]

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Port for local server
    PORT = int(os.getenv('PORT', '8000'))

    @classmethod
    def as_dict(cls):
        """Return every upper-case setting as a plain dict"""
        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}
