"""
Subscribers Routes
==================

Provides:
- POST '' -- subscribe (form fields: name, email)
- GET /confirm -- confirm subscription (?subscription_token=...)

Each route only unpacks the request, runs the workflow, and maps the outcome
to a status code:

    success             -> 200
    InvalidInput        -> 400
    InvalidToken        -> 400
    PersistenceFailed   -> 500
    NotificationFailed  -> 500
"""

from flask import current_app, jsonify, request

from listkeeper.core.logging_service import LoggingService
from . import subscribers_bp
from .workflows import (
    InvalidInput,
    InvalidToken,
    NotificationFailed,
    PersistenceFailed,
    confirm_subscription,
    register_subscriber,
)


def _get_extension():
    return current_app.extensions['listkeeper']


def _get_brand_name():
    """Get the brand name for user-facing messages"""
    return current_app.config.get('EMAIL_BRAND_NAME', 'our newsletter')


def _get_form_data():
    """Form-encoded body, falling back to JSON for script clients"""
    if request.form:
        return request.form
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ===================
# PUBLIC ROUTES
# ===================

@subscribers_bp.route('', methods=['POST'])
def subscribe():
    """Handle new subscription requests"""
    ext = _get_extension()
    data = _get_form_data()

    try:
        register_subscriber(
            email=data.get('email'),
            name=data.get('name'),
            store=ext.store,
            email_service=ext.email_service,
            base_url=current_app.config['APP_BASE_URL'],
            max_attempts=current_app.config['OUTBOX_MAX_ATTEMPTS'],
        )
    except InvalidInput as e:
        return jsonify({'error': str(e)}), 400
    except PersistenceFailed:
        return jsonify({'error': 'Could not save your subscription'}), 500
    except NotificationFailed:
        return jsonify({'error': 'Could not send the confirmation email'}), 500
    except Exception as e:
        LoggingService.log_error_with_traceback('subscribers', e)
        return jsonify({'error': 'An unexpected error occurred'}), 500

    return jsonify({
        'message': f'Thanks for joining {_get_brand_name()}! Check your inbox to confirm your subscription.'
    }), 200


@subscribers_bp.route('/confirm', methods=['GET'])
def confirm():
    """Redeem a confirmation link"""
    ext = _get_extension()
    token = request.args.get('subscription_token')

    try:
        confirm_subscription(token, ext.store)
    except InvalidToken:
        return jsonify({'error': 'Invalid or expired confirmation link'}), 400
    except PersistenceFailed:
        return jsonify({'error': 'Could not confirm your subscription right now'}), 500
    except Exception as e:
        LoggingService.log_error_with_traceback('subscribers', e)
        return jsonify({'error': 'An unexpected error occurred'}), 500

    return jsonify({'message': 'Your subscription is confirmed.'}), 200
