import os
from dotenv import load_dotenv

load_dotenv()

IS_PRODUCTION = (
    os.getenv('ENVIRONMENT') == 'production' or
    os.getenv('FLASK_ENV') == 'production' or
    os.getenv('PRODUCTION') == '1'
)

DB_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'databases')


class Config:
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')

    # Database
    DB_DIR = DB_DIR
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL', 'sqlite:///' + os.path.join(DB_DIR, 'subscriptions.db')
    )

    # Where confirmation links point
    APP_BASE_URL = os.getenv('BASE_URL', 'http://localhost:8000')

    # Email
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'resend')
    RESEND_API_KEY = os.getenv('RESEND_API_KEY', '')
    EMAIL_ADDRESS = os.getenv('EMAIL_ADDRESS', 'onboarding@resend.dev')
    EMAIL_BRAND_NAME = 'My Listkeeper Newsletter'

    # Links expire after a week in production
    SUBSCRIPTION_TOKEN_MAX_AGE_HOURS = 24 * 7 if IS_PRODUCTION else None

    PORT = int(os.getenv('PORT', '8000'))
