"""
Trade lifecycle, rating and messaging operations.

Each operation validates its input in a fixed order and raises a coded
``APIError`` on the first failure, so clients always see the same error for
the same request.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from .exceptions import BadRequestError, ConflictError, NotAuthorizedError, ResourceNotFoundError
from .models import (
    Book, Message, Rating, Trade, User,
    can_transition, roles_allowed_to_enter,
)
from .notifications import (
    notify_new_message, notify_trade_completed,
    notify_trade_proposed, notify_trade_responded,
)
from .validators import parse_object_id, parse_star_rating, text_length

logger = logging.getLogger(__name__)

TRADE_RELATED = ('proposer', 'receiver', 'requested_book', 'offered_book')


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def require_trade_id(raw_id):
    trade_id = parse_object_id(raw_id)
    if trade_id is None:
        raise BadRequestError('Invalid trade ID format', 'INVALID_TRADE_ID')
    return trade_id


def load_trade(raw_id):
    """Parse ``raw_id`` and fetch the trade with its parties and books."""
    trade_id = require_trade_id(raw_id)
    try:
        return Trade.objects.select_related(*TRADE_RELATED).get(pk=trade_id)
    except Trade.DoesNotExist:
        raise ResourceNotFoundError('Trade not found', 'TRADE_NOT_FOUND')


# ============================================================================
# Trade State Machine
# ============================================================================

def propose_trade(proposer, requested_book_id, offered_book_id):
    """
    Propose swapping ``offered_book_id`` for ``requested_book_id``.

    The receiver is always the owner of the requested book. Book availability
    flags are left untouched.

    Returns:
        Trade: The new trade in ``proposed`` status
    """
    if _is_blank(requested_book_id) or _is_blank(offered_book_id):
        raise BadRequestError(
            'Both requested book and offered book are required',
            'MISSING_REQUIRED_FIELDS'
        )

    requested_pk = parse_object_id(requested_book_id)
    if requested_pk is None:
        raise BadRequestError('Invalid requested book ID format', 'INVALID_BOOK_ID')

    offered_pk = parse_object_id(offered_book_id)
    if offered_pk is None:
        raise BadRequestError('Invalid offered book ID format', 'INVALID_BOOK_ID')

    requested_book = Book.objects.select_related('owner').filter(pk=requested_pk).first()
    if requested_book is None:
        raise ResourceNotFoundError('Requested book not found', 'REQUESTED_BOOK_NOT_FOUND')

    offered_book = Book.objects.select_related('owner').filter(pk=offered_pk).first()
    if offered_book is None:
        raise ResourceNotFoundError('Offered book not found', 'OFFERED_BOOK_NOT_FOUND')

    if offered_book.owner_id != proposer.id:
        raise NotAuthorizedError('You can only offer books that you own', 'NOT_BOOK_OWNER')

    if requested_book.owner_id == proposer.id:
        raise BadRequestError('You cannot request your own book', 'CANNOT_REQUEST_OWN_BOOK')

    if not requested_book.is_available:
        raise BadRequestError('Requested book is not available for trade', 'REQUESTED_BOOK_UNAVAILABLE')

    if not offered_book.is_available:
        raise BadRequestError('Offered book is not available for trade', 'OFFERED_BOOK_UNAVAILABLE')

    with transaction.atomic():
        trade = Trade.objects.create(
            proposer=proposer,
            receiver=requested_book.owner,
            requested_book=requested_book,
            offered_book=offered_book,
            status='proposed',
            proposed_at=timezone.now()
        )

    logger.info(
        f"Trade {trade.pk} proposed by user {proposer.id} "
        f"to user {trade.receiver_id} for book {requested_book.pk}"
    )
    notify_trade_proposed(trade)
    return trade


TRANSITION_DENIED_MESSAGES = {
    'accepted': 'Only the receiver can accept this trade',
    'declined': 'Only the receiver can decline this trade',
    'completed': 'Only trade participants can complete this trade',
}

TRANSITION_STATE_MESSAGES = {
    'accepted': 'Cannot accept trade with status "{status}". Only proposed trades can be accepted.',
    'declined': 'Cannot decline trade with status "{status}". Only proposed trades can be declined.',
    'completed': 'Cannot complete trade with status "{status}". Only accepted trades can be completed.',
}


def transition_trade(raw_trade_id, actor, new_status):
    """
    Move a trade to ``new_status`` on behalf of ``actor``.

    Authorization is checked before the current status, so a user who is not
    allowed to make the change learns nothing about the trade's state.

    Raises:
        BadRequestError: INVALID_TRADE_ID or INVALID_TRADE_STATUS
        ResourceNotFoundError: TRADE_NOT_FOUND
        NotAuthorizedError: NOT_AUTHORIZED
    """
    trade = load_trade(raw_trade_id)

    if trade.role_of(actor.id) not in roles_allowed_to_enter(new_status):
        logger.warning(
            f"User {actor.id} refused {new_status} transition on trade {trade.pk}"
        )
        raise NotAuthorizedError(TRANSITION_DENIED_MESSAGES[new_status], 'NOT_AUTHORIZED')

    if not can_transition(trade.status, new_status, actor.id, trade):
        raise BadRequestError(
            TRANSITION_STATE_MESSAGES[new_status].format(status=trade.status),
            'INVALID_TRADE_STATUS'
        )

    old_status = trade.status
    if not trade.apply_transition(new_status):
        # Another request changed the status after it was read
        trade.refresh_from_db(fields=['status'])
        logger.warning(
            f"Concurrent transition on trade {trade.pk}: "
            f"{old_status} -> {new_status} lost to {trade.status}"
        )
        raise BadRequestError(
            TRANSITION_STATE_MESSAGES[new_status].format(status=trade.status),
            'INVALID_TRADE_STATUS'
        )

    logger.info(
        f"Trade {trade.pk} status changed {old_status} -> {new_status} by user {actor.id}"
    )

    if new_status == 'completed':
        notify_trade_completed(trade, actor)
    else:
        notify_trade_responded(trade)
    return trade


def accept_trade(raw_trade_id, actor):
    return transition_trade(raw_trade_id, actor, 'accepted')


def decline_trade(raw_trade_id, actor):
    return transition_trade(raw_trade_id, actor, 'declined')


def complete_trade(raw_trade_id, actor):
    return transition_trade(raw_trade_id, actor, 'completed')


def trades_for_user(user, status=None):
    """
    Trades where ``user`` is proposer or receiver, newest first.

    Raises:
        BadRequestError: INVALID_STATUS for an unknown status filter
    """
    queryset = Trade.objects.filter(
        Q(proposer=user) | Q(receiver=user)
    ).select_related(*TRADE_RELATED)

    if status:
        if status not in Trade.STATUSES:
            raise BadRequestError(
                f"Invalid status. Must be one of: {', '.join(Trade.STATUSES)}",
                'INVALID_STATUS'
            )
        queryset = queryset.filter(status=status)

    return queryset.order_by('-created_at', '-id')


def get_trade_for_party(raw_trade_id, user):
    trade = load_trade(raw_trade_id)
    if not trade.is_party(user.id):
        raise NotAuthorizedError('You are not a participant in this trade', 'NOT_AUTHORIZED')
    return trade


# ============================================================================
# Ratings
# ============================================================================

def has_rated(trade, user):
    return Rating.objects.filter(trade=trade, rater=user).exists()


def submit_rating(rater, raw_trade_id, stars, comment=None):
    """
    Rate the other party of a completed trade.

    The (trade, rater) unique constraint is the authoritative duplicate
    guard; the has_rated() check only gives the common case a fast answer.
    The rated user's aggregate is recomputed by the post_save signal inside
    the same transaction.

    Returns:
        Rating: The stored rating
    """
    if _is_blank(raw_trade_id):
        raise BadRequestError('Trade ID is required', 'MISSING_TRADE_ID')

    if stars is None or (isinstance(stars, str) and not stars.strip()):
        raise BadRequestError('Star rating is required', 'MISSING_STARS')

    star_value = parse_star_rating(stars)
    if star_value is None:
        raise BadRequestError('Stars must be an integer between 1 and 5', 'INVALID_STARS')

    if comment is not None and not isinstance(comment, str):
        raise BadRequestError('Comment must be a string', 'VALIDATION_ERROR')
    comment_text = (comment or '').strip()

    if star_value <= 3 and not comment_text:
        raise BadRequestError(
            'A comment is required for ratings of 3 stars or less',
            'COMMENT_REQUIRED'
        )

    if text_length(comment_text) > 1000:
        raise BadRequestError('Comment must be at most 1000 characters', 'VALIDATION_ERROR')

    trade = load_trade(raw_trade_id)

    if trade.status != 'completed':
        raise BadRequestError('Can only rate completed trades', 'TRADE_NOT_COMPLETED')

    if not trade.is_party(rater.id):
        raise NotAuthorizedError('You are not a participant in this trade', 'NOT_AUTHORIZED')

    if has_rated(trade, rater):
        raise ConflictError('You have already rated this trade', 'DUPLICATE_RATING')

    try:
        with transaction.atomic():
            rating = Rating.objects.create(
                trade=trade,
                rater=rater,
                rated_user_id=trade.other_party_id(rater.id),
                stars=star_value,
                comment=comment_text
            )
    except IntegrityError:
        logger.warning(
            f"Duplicate rating rejected by constraint: trade {trade.pk}, rater {rater.id}"
        )
        raise ConflictError('You have already rated this trade', 'DUPLICATE_RATING')

    logger.info(
        f"Rating {rating.pk} submitted: trade {trade.pk}, rater {rater.id}, "
        f"rated user {rating.rated_user_id}, stars {star_value}"
    )
    return Rating.objects.select_related('rater', 'rated_user', 'trade').get(pk=rating.pk)


def rating_for_trade(raw_trade_id, user):
    """The rating ``user`` left on a trade."""
    trade_id = require_trade_id(raw_trade_id)
    rating = Rating.objects.select_related('rater', 'rated_user', 'trade').filter(
        trade_id=trade_id, rater=user
    ).first()
    if rating is None:
        raise ResourceNotFoundError('No rating found for this trade', 'RATING_NOT_FOUND')
    return rating


def load_user(raw_user_id):
    user_id = parse_object_id(raw_user_id)
    if user_id is None:
        raise BadRequestError('Invalid user ID format', 'INVALID_USER_ID')
    try:
        return User.objects.get(pk=user_id, is_active=True)
    except User.DoesNotExist:
        raise ResourceNotFoundError('User not found', 'USER_NOT_FOUND')


# ============================================================================
# Messages
# ============================================================================

def send_message(sender, raw_trade_id, content):
    """
    Post a message on an accepted trade.

    Returns:
        Message: The stored message
    """
    if _is_blank(raw_trade_id) or content is None:
        raise BadRequestError('Trade ID and content are required', 'MISSING_REQUIRED_FIELDS')

    require_trade_id(raw_trade_id)

    if not isinstance(content, str) or not content.strip():
        raise BadRequestError('Message content cannot be empty', 'EMPTY_CONTENT')

    text = content.strip()
    if text_length(text) > Message.MAX_LENGTH:
        raise BadRequestError(
            f'Message content cannot exceed {Message.MAX_LENGTH} characters',
            'CONTENT_TOO_LONG'
        )

    trade = load_trade(raw_trade_id)

    if not trade.is_party(sender.id):
        raise NotAuthorizedError(
            'You are not authorized to send messages for this trade',
            'NOT_AUTHORIZED'
        )

    if trade.status != 'accepted':
        raise BadRequestError(
            'Messages can only be sent for accepted trades',
            'INVALID_TRADE_STATUS'
        )

    with transaction.atomic():
        message = Message.objects.create(
            trade=trade,
            sender=sender,
            content=text,
            created_at=timezone.now()
        )

    logger.info(f"Message {message.pk} sent on trade {trade.pk} by user {sender.id}")
    notify_new_message(message)
    return message


def messages_for_trade(raw_trade_id, user):
    """Messages of a trade in the order they were sent. Parties only."""
    trade = get_trade_for_party(raw_trade_id, user)
    return trade.messages.select_related('sender').order_by('created_at', 'id')
