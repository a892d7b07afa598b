"""
Listkeeper Starter Template
===========================

A ready-to-run Flask application with the mailing list enabled.

Run with:
    python app.py

Retry failed confirmation emails with:
    flask --app app outbox drain

Visit:
    http://localhost:8000/health_check  - Liveness probe
    POST http://localhost:8000/subscriptions (name, email)
"""

from flask import Flask
from listkeeper import Listkeeper

from config import Config, IS_PRODUCTION

# Create Flask app
app = Flask(__name__)
app.config.from_object(Config)

# Initialize Listkeeper - registers the subscribers and ops modules
listkeeper = Listkeeper(app)


# =============================================================================
# Run the app
# =============================================================================

if __name__ == '__main__':
    print("\n" + "=" * 60)
    print("Listkeeper Starter Template")
    print("=" * 60)
    print(f"Health check:    http://localhost:{Config.PORT}/health_check")
    print(f"Subscribe:       POST http://localhost:{Config.PORT}/subscriptions")
    print("=" * 60 + "\n")

    app.run(host='0.0.0.0', port=Config.PORT, debug=not IS_PRODUCTION)
