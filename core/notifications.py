"""
Notification side-channel.

Notifications are recorded after the primary write of a trade or message
operation. Recording runs in its own savepoint and never raises, so a failure
here cannot undo or fail the operation that triggered it.
"""

import logging

from django.db import transaction

from .models import Notification

logger = logging.getLogger(__name__)


def _trade_title(trade):
    book = trade.requested_book
    return book.title if book is not None else 'a book'


def notify(recipient_id, notification_type, message, trade=None, actor=None):
    """
    Record a notification for ``recipient_id``.

    Returns:
        Notification or None: The stored notification, or None if storing failed
    """
    try:
        with transaction.atomic():
            return Notification.objects.create(
                recipient_id=recipient_id,
                type=notification_type,
                message=message[:500],
                related_trade=trade,
                related_user=actor
            )
    except Exception as e:
        logger.error(
            f"Failed to record {notification_type} notification "
            f"for user {recipient_id}: {e}",
            exc_info=True
        )
        return None


def notify_trade_proposed(trade):
    proposer = trade.proposer
    return notify(
        trade.receiver_id,
        'trade_request',
        f'{proposer.display_name} proposed a trade for your book "{_trade_title(trade)}"',
        trade=trade,
        actor=proposer
    )


def notify_trade_responded(trade):
    """Tell the proposer that the receiver accepted or declined."""
    receiver = trade.receiver
    verb = 'accepted' if trade.status == 'accepted' else 'declined'
    return notify(
        trade.proposer_id,
        f'trade_{verb}',
        f'{receiver.display_name} {verb} your trade request for "{_trade_title(trade)}"',
        trade=trade,
        actor=receiver
    )


def notify_trade_completed(trade, actor):
    return notify(
        trade.other_party_id(actor.id),
        'trade_completed',
        f'{actor.display_name} marked your trade for "{_trade_title(trade)}" as completed',
        trade=trade,
        actor=actor
    )


def notify_new_message(message):
    trade = message.trade
    sender = message.sender
    return notify(
        trade.other_party_id(sender.id),
        'new_message',
        f'{sender.display_name} sent you a message about "{_trade_title(trade)}"',
        trade=trade,
        actor=sender
    )
