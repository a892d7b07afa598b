"""
Centralized logging service for Listkeeper.
Provides structured event logging on top of the standard logging module,
with request context and secret scrubbing.
"""

import json
import logging
import traceback

from flask import request, has_request_context

# Detail keys whose values must never reach a log line
SENSITIVE_KEYS = {'token', 'subscription_token', 'api_key', 'password', 'authorization'}

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s [%(request_path)s %(ip_address)s] %(message)s'


class RequestContextFilter(logging.Filter):
    """Stamp the current request path and client IP onto every record"""

    def filter(self, record):
        ip_address, request_path = _get_request_context()
        record.ip_address = ip_address or '-'
        record.request_path = request_path or '-'
        return True


def _get_request_context():
    """Extract request context information"""
    if not has_request_context():
        return None, None

    ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
    if ip_address and ',' in ip_address:
        ip_address = ip_address.split(',')[0].strip()

    return ip_address, request.path


def scrub(details):
    """Return a copy of details with secret values masked"""
    if not isinstance(details, dict):
        return details
    cleaned = {}
    for key, value in details.items():
        if key.lower() in SENSITIVE_KEYS:
            cleaned[key] = '***'
        elif isinstance(value, dict):
            cleaned[key] = scrub(value)
        else:
            cleaned[key] = value
    return cleaned


def configure_logging(app):
    """Install one stream handler on the listkeeper logger tree"""
    root = logging.getLogger('listkeeper')
    root.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    if any(getattr(h, '_listkeeper', False) for h in root.handlers):
        return root

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestContextFilter())
    handler._listkeeper = True
    root.addHandler(handler)
    return root


class LoggingService:
    """Application-wide structured logging"""

    @staticmethod
    def log(level, source, message, details=None):
        """
        Log a structured event

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (subscribers, email, outbox, etc.)
            message (str): Main log message
            details (dict): Additional context, JSON-encoded after scrubbing
        """
        log = logging.getLogger(f'listkeeper.{source}')
        levelno = logging.getLevelName(level.upper())
        if not isinstance(levelno, int):
            levelno = logging.INFO

        if details:
            details = scrub(details)
            message = f"{message} | {json.dumps(details, default=str, sort_keys=True)}"

        log.log(levelno, message, extra={'details': details})

    @staticmethod
    def debug(source, message, details=None):
        """Log debug message"""
        LoggingService.log('DEBUG', source, message, details)

    @staticmethod
    def info(source, message, details=None):
        """Log info message"""
        LoggingService.log('INFO', source, message, details)

    @staticmethod
    def warning(source, message, details=None):
        """Log warning message"""
        LoggingService.log('WARNING', source, message, details)

    @staticmethod
    def error(source, message, details=None):
        """Log error message"""
        LoggingService.log('ERROR', source, message, details)

    @staticmethod
    def critical(source, message, details=None):
        """Log critical message"""
        LoggingService.log('CRITICAL', source, message, details)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)


# Convenience instance for easy importing
logger = LoggingService()
