"""
Email Module
============

Provides the notification gateway used to send subscription confirmation
emails through Resend, MailSlurp, or SMTP.
"""

from .email_service import (
    EmailService,
    ProviderRejected,
    ProviderUnavailable,
    SendError,
    email_service,
)

__all__ = ['EmailService', 'ProviderRejected', 'ProviderUnavailable', 'SendError', 'email_service']
