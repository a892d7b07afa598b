"""
Outbox Dispatcher
=================

Re-sends confirmation emails whose first delivery attempt failed. Outbox rows
are written in the same transaction as the subscriber, so a provider outage
never loses a registration; run `flask outbox drain` (cron, systemd timer)
to retry them.
"""

import logging

from listkeeper.core.logging_service import LoggingService
from listkeeper.modules.email.email_service import SendError
from .models import STATUS_CONFIRMED
from .store import StoreError
from .workflows import build_confirmation_link

logger = logging.getLogger(__name__)


class OutboxDispatcher:

    def __init__(self, store, email_service, base_url, max_attempts=5):
        self.store = store
        self.email_service = email_service
        self.base_url = base_url
        self.max_attempts = max_attempts

    def drain(self, limit=100):
        """
        Attempt delivery of up to `limit` pending messages, oldest first.

        Returns:
            dict: {'sent': int, 'failed': int, 'skipped': int}
        """
        counts = {'sent': 0, 'failed': 0, 'skipped': 0}
        messages = self.store.pending_outbox(limit=limit, max_attempts=self.max_attempts)
        logger.info(f"Draining outbox: {len(messages)} pending message(s)")

        for message in messages:
            if message['status'] == STATUS_CONFIRMED:
                # Confirmed through an earlier copy of the link
                try:
                    self.store.mark_outbox_sent(message['id'])
                except StoreError as e:
                    LoggingService.error('outbox', 'Could not close outbox row of confirmed subscriber', {
                        'outbox_id': message['id'],
                        'reason': type(e).__name__,
                    })
                counts['skipped'] += 1
                continue

            link = build_confirmation_link(self.base_url, message['token'])
            try:
                self.email_service.send_confirmation(message['email'], link, name=message['name'])
            except SendError as e:
                try:
                    status = self.store.record_outbox_failure(message['id'], e, self.max_attempts)
                except StoreError as store_error:
                    status = None
                    LoggingService.error('outbox', 'Failed delivery not recorded on outbox row', {
                        'outbox_id': message['id'],
                        'reason': type(store_error).__name__,
                    })
                LoggingService.warning('outbox', 'Confirmation email retry failed', {
                    'subscriber_email': message['email'],
                    'attempts': message['attempts'] + 1,
                    'outbox_status': status,
                    'reason': type(e).__name__,
                })
                counts['failed'] += 1
                continue

            try:
                self.store.mark_outbox_sent(message['id'])
            except StoreError as e:
                LoggingService.error('outbox', 'Email sent but outbox row not updated', {
                    'outbox_id': message['id'],
                    'reason': type(e).__name__,
                })
            LoggingService.info('outbox', 'Confirmation email delivered on retry', {
                'subscriber_email': message['email'],
            })
            counts['sent'] += 1

        return counts
