"""
Data models for the BookVerse trading service.
"""

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .validators import normalize_isbn, validate_isbn, validate_publication_year


class User(AbstractUser):
    """
    Custom User model extending Django's AbstractUser.

    Additional fields:
    - email: Required, unique email address
    - name: Display name shown to other users
    - city: Optional city, shown only when show_city is enabled
    - show_city: Privacy setting for the city field
    - average_rating: Mean of all stars received (derived)
    - rating_count: Number of ratings received (derived)
    - created_at: Account creation timestamp
    - updated_at: Last update timestamp
    """

    email = models.EmailField(
        _('email address'),
        unique=True,
        blank=False,
        null=False,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
        help_text=_('Required. Enter a valid email address.')
    )

    name = models.CharField(
        _('name'),
        max_length=100,
        blank=True,
        default='',
        help_text=_('Display name shown to other users.')
    )

    city = models.CharField(
        _('city'),
        max_length=100,
        blank=True,
        default='',
        help_text=_('City used for local book browsing.')
    )

    show_city = models.BooleanField(
        _('show city'),
        default=True,
        help_text=_('Whether the city is visible to other users.')
    )

    average_rating = models.FloatField(
        _('average rating'),
        default=0.0,
        validators=[
            MinValueValidator(0.0, message=_('Rating cannot be negative.')),
            MaxValueValidator(5.0, message=_('Rating cannot exceed 5.'))
        ],
        help_text=_('Mean of all stars received from trade partners.')
    )

    rating_count = models.PositiveIntegerField(
        _('rating count'),
        default=0,
        help_text=_('Number of ratings received from trade partners.')
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
        help_text=_('Timestamp when the account was created.')
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
        help_text=_('Timestamp when the account was last updated.')
    )

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['city'], name='core_user_city_idx'),
        ]

    def __str__(self):
        """Return email as string representation."""
        return self.email or self.username

    @property
    def display_name(self):
        return self.name or self.username

    def clean(self):
        """
        Validate model fields.

        Raises:
            ValidationError: If email is missing
        """
        super().clean()

        if self.email:
            self.email = self.email.lower()

        if not self.email:
            raise ValidationError({
                'email': _('Email address is required.')
            })

    def save(self, *args, **kwargs):
        """
        Normalize email and validate updates.

        Creation skips full_clean so duplicate emails surface as IntegrityError.
        """
        if self.email:
            self.email = self.email.lower()

        if self.pk is not None:
            self.full_clean()

        super().save(*args, **kwargs)


# ============================================================================
# Book Registry
# ============================================================================

class Book(models.Model):
    """
    A physical book listed by its owner for trading.

    ``is_available`` is controlled by the owner only. Proposing or accepting
    a trade does not change it.
    """

    CONDITION_CHOICES = [
        ('New', 'New'),
        ('Like New', 'Like New'),
        ('Good', 'Good'),
        ('Fair', 'Fair'),
        ('Poor', 'Poor'),
    ]

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='books',
        help_text=_('User who owns the book')
    )

    title = models.CharField(
        _('title'),
        max_length=200,
        help_text=_('Book title')
    )

    author = models.CharField(
        _('author'),
        max_length=200,
        help_text=_('Book author')
    )

    isbn = models.CharField(
        _('ISBN'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_isbn],
        help_text=_('Optional ISBN-10 or ISBN-13, stored without hyphens')
    )

    genre = models.CharField(
        _('genre'),
        max_length=100,
        help_text=_('Book genre')
    )

    condition = models.CharField(
        _('condition'),
        max_length=10,
        choices=CONDITION_CHOICES,
        help_text=_('Physical condition of the book')
    )

    description = models.TextField(
        _('description'),
        max_length=1000,
        blank=True,
        default='',
        help_text=_('Optional description, up to 1000 characters')
    )

    image_url = models.URLField(
        _('image URL'),
        max_length=500,
        blank=True,
        default='',
        help_text=_('Location of the cover image in external storage')
    )

    publication_year = models.PositiveSmallIntegerField(
        _('publication year'),
        null=True,
        blank=True,
        validators=[validate_publication_year],
        help_text=_('Year the edition was published')
    )

    publisher = models.CharField(
        _('publisher'),
        max_length=200,
        blank=True,
        default='',
        help_text=_('Publisher name')
    )

    is_available = models.BooleanField(
        _('available'),
        default=True,
        help_text=_('Whether the owner is offering this book for trade')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('book')
        verbose_name_plural = _('books')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['owner'], name='core_book_owner_idx'),
            models.Index(fields=['is_available'], name='core_book_available_idx'),
            models.Index(fields=['genre'], name='core_book_genre_idx'),
            models.Index(fields=['isbn'], name='core_book_isbn_idx'),
        ]

    def __str__(self):
        return f"{self.title} by {self.author}"

    def clean(self):
        super().clean()

        self.isbn = normalize_isbn(self.isbn)

        if self.title is not None and not self.title.strip():
            raise ValidationError({
                'title': _('Title cannot be empty.')
            })

        if self.author is not None and not self.author.strip():
            raise ValidationError({
                'author': _('Author cannot be empty.')
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def active_trades(self):
        """Return trades still in flight that reference this book."""
        return Trade.objects.filter(
            Q(requested_book=self) | Q(offered_book=self),
            status__in=Trade.ACTIVE_STATUSES
        )


# ============================================================================
# Trade State Machine
# ============================================================================

PROPOSER = 'proposer'
RECEIVER = 'receiver'

# (from_status, to_status) -> roles allowed to perform the transition
TRADE_TRANSITIONS = {
    ('proposed', 'accepted'): (RECEIVER,),
    ('proposed', 'declined'): (RECEIVER,),
    ('accepted', 'completed'): (PROPOSER, RECEIVER),
}

# Timestamp stamped by each target status
TRANSITION_TIMESTAMPS = {
    'accepted': 'responded_at',
    'declined': 'responded_at',
    'completed': 'completed_at',
}


def roles_allowed_to_enter(new_status):
    """
    Collect the roles allowed to move a trade into ``new_status`` from any state.

    Returns:
        set: Role names (may be empty for unreachable statuses)
    """
    roles = set()
    for (_from_status, to_status), allowed in TRADE_TRANSITIONS.items():
        if to_status == new_status:
            roles.update(allowed)
    return roles


def can_transition(current, new, actor_id, trade):
    """
    Decide whether ``actor_id`` may move ``trade`` from ``current`` to ``new``.

    Args:
        current: Current trade status
        new: Requested trade status
        actor_id: ID of the user requesting the change
        trade: Trade instance, used to resolve the actor's role

    Returns:
        bool: True only for a listed transition performed by an allowed role
    """
    allowed_roles = TRADE_TRANSITIONS.get((current, new))
    if not allowed_roles:
        return False
    return trade.role_of(actor_id) in allowed_roles


class Trade(models.Model):
    """
    A proposal to swap the proposer's offered book for the receiver's requested book.

    Status flow:
    - proposed -> accepted (receiver only)
    - proposed -> declined (receiver only)
    - accepted -> completed (either party)
    - declined and completed are terminal
    """

    STATUS_CHOICES = [
        ('proposed', 'Proposed'),
        ('accepted', 'Accepted'),
        ('declined', 'Declined'),
        ('completed', 'Completed'),
    ]

    STATUSES = [choice[0] for choice in STATUS_CHOICES]

    ACTIVE_STATUSES = ['proposed', 'accepted']

    proposer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='trades_proposed',
        help_text=_('User proposing the trade')
    )

    receiver = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='trades_received',
        help_text=_('Owner of the requested book')
    )

    requested_book = models.ForeignKey(
        Book,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='trades_requested',
        help_text=_('Book the proposer wants')
    )

    offered_book = models.ForeignKey(
        Book,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='trades_offered',
        help_text=_('Book the proposer gives in return')
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default='proposed',
        help_text=_('Current trade status')
    )

    proposed_at = models.DateTimeField(
        _('proposed at'),
        default=timezone.now,
        help_text=_('When the trade was proposed')
    )

    responded_at = models.DateTimeField(
        _('responded at'),
        null=True,
        blank=True,
        help_text=_('When the receiver accepted or declined')
    )

    completed_at = models.DateTimeField(
        _('completed at'),
        null=True,
        blank=True,
        help_text=_('When the trade was marked completed')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('trade')
        verbose_name_plural = _('trades')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['proposer', 'status'], name='core_trade_proposer_idx'),
            models.Index(fields=['receiver', 'status'], name='core_trade_receiver_idx'),
            models.Index(fields=['status'], name='core_trade_status_idx'),
        ]

    def __str__(self):
        return f"Trade {self.pk}: {self.proposer_id} -> {self.receiver_id} ({self.status})"

    def role_of(self, user_id):
        """Return 'proposer', 'receiver' or None for the given user ID."""
        if user_id is None:
            return None
        if user_id == self.proposer_id:
            return PROPOSER
        if user_id == self.receiver_id:
            return RECEIVER
        return None

    def is_party(self, user_id):
        return self.role_of(user_id) is not None

    def other_party_id(self, user_id):
        """ID of the counterparty for a party of this trade."""
        if user_id == self.proposer_id:
            return self.receiver_id
        if user_id == self.receiver_id:
            return self.proposer_id
        return None

    def clean(self):
        """
        Validate trade invariants.

        Ensures:
        - Proposer and receiver are different users
        - Proposer owns the offered book
        - Receiver owns the requested book

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if self.proposer_id and self.receiver_id and self.proposer_id == self.receiver_id:
            raise ValidationError({
                'receiver': _('Proposer and receiver cannot be the same user.')
            })

        if self.pk is None:
            if self.offered_book_id and self.offered_book.owner_id != self.proposer_id:
                raise ValidationError({
                    'offered_book': _('The offered book must belong to the proposer.')
                })

            if self.requested_book_id and self.requested_book.owner_id != self.receiver_id:
                raise ValidationError({
                    'requested_book': _('The requested book must belong to the receiver.')
                })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def apply_transition(self, new_status):
        """
        Move the trade to ``new_status`` with a conditional update.

        The row is only written if its status still equals the status this
        instance was loaded with, so two concurrent transitions cannot both
        succeed.

        Returns:
            bool: True if this call performed the transition
        """
        now = timezone.now()
        changes = {'status': new_status, 'updated_at': now}
        timestamp_field = TRANSITION_TIMESTAMPS.get(new_status)
        if timestamp_field:
            changes[timestamp_field] = now

        updated = Trade.objects.filter(pk=self.pk, status=self.status).update(**changes)
        if updated:
            for field, value in changes.items():
                setattr(self, field, value)
        return bool(updated)


# ============================================================================
# Ratings
# ============================================================================

class Rating(models.Model):
    """
    A star rating left by one trade party for the other after completion.

    Fields:
    - trade: The completed trade being rated
    - rater: Party leaving the rating
    - rated_user: The other party (derived from the trade)
    - stars: Integer from 1 to 5
    - comment: Trimmed feedback, required for 3 stars or fewer
    - created_at: Timestamp when the rating was created
    """

    trade = models.ForeignKey(
        Trade,
        on_delete=models.CASCADE,
        related_name='ratings',
        help_text=_('Trade being rated')
    )

    rater = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='ratings_given',
        help_text=_('User leaving the rating')
    )

    rated_user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='ratings_received',
        help_text=_('User receiving the rating')
    )

    stars = models.PositiveSmallIntegerField(
        _('stars'),
        validators=[
            MinValueValidator(1, message=_('Rating must be at least 1.')),
            MaxValueValidator(5, message=_('Rating must be at most 5.'))
        ],
        help_text=_('Rating from 1 to 5 stars')
    )

    comment = models.TextField(
        _('comment'),
        max_length=1000,
        blank=True,
        default='',
        help_text=_('Feedback about the trade, required for 3 stars or fewer')
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
        help_text=_('Timestamp when the rating was created')
    )

    class Meta:
        verbose_name = _('rating')
        verbose_name_plural = _('ratings')
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['trade', 'rater'],
                name='unique_rating_per_trade_rater'
            ),
        ]
        indexes = [
            models.Index(fields=['rated_user'], name='core_rating_rated_user_idx'),
        ]

    def __str__(self):
        return f"Rating by {self.rater_id} for {self.rated_user_id} - {self.stars}★"

    def validate_rules(self):
        """
        Check the rating business rules.

        Ensures:
        - Trade is completed
        - Rater is a party to the trade
        - Rated user is the other party
        - Low ratings (3 stars or fewer) carry a non-blank comment

        Raises:
            ValidationError: If a rule is broken
        """
        if self.trade_id:
            trade = self.trade
            if trade.status != 'completed':
                raise ValidationError({
                    'trade': _('Only completed trades can be rated.')
                })

            if self.rater_id and not trade.is_party(self.rater_id):
                raise ValidationError({
                    'rater': _('Rater must be the proposer or receiver of the trade.')
                })

            if self.rater_id and self.rated_user_id != trade.other_party_id(self.rater_id):
                raise ValidationError({
                    'rated_user': _('Rated user must be the other party of the trade.')
                })

        if self.stars is not None and self.stars <= 3 and not (self.comment or '').strip():
            raise ValidationError({
                'comment': _('A comment is required for ratings of 3 stars or less.')
            })

    def clean(self):
        super().clean()
        self.validate_rules()

    def save(self, *args, **kwargs):
        """
        Trim the comment and check the business rules on creation.

        full_clean() is not called so the (trade, rater) unique constraint
        reaches the database and raises IntegrityError.
        """
        self.comment = (self.comment or '').strip()
        if not self.pk:
            self.validate_rules()
        super().save(*args, **kwargs)


# ============================================================================
# Messages
# ============================================================================

class Message(models.Model):
    """A chat message between the two parties of an accepted trade."""

    MAX_LENGTH = 1000

    trade = models.ForeignKey(
        Trade,
        on_delete=models.CASCADE,
        related_name='messages',
        help_text=_('Trade the conversation belongs to')
    )

    sender = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='messages_sent',
        help_text=_('User who sent the message')
    )

    content = models.TextField(
        _('content'),
        max_length=MAX_LENGTH,
        help_text=_('Message text, up to 1000 characters')
    )

    created_at = models.DateTimeField(
        _('created at'),
        default=timezone.now,
        help_text=_('Server time the message was stored')
    )

    class Meta:
        verbose_name = _('message')
        verbose_name_plural = _('messages')
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['trade', 'created_at'], name='core_message_trade_idx'),
        ]

    def __str__(self):
        return f"Message {self.pk} on trade {self.trade_id}"


# ============================================================================
# Notifications
# ============================================================================

class Notification(models.Model):
    """An in-app notice about trade activity, purged after the retention window."""

    TYPE_CHOICES = [
        ('trade_request', 'Trade request'),
        ('trade_accepted', 'Trade accepted'),
        ('trade_declined', 'Trade declined'),
        ('trade_completed', 'Trade completed'),
        ('new_message', 'New message'),
    ]

    recipient = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notifications',
        help_text=_('User the notification is for')
    )

    type = models.CharField(
        _('type'),
        max_length=20,
        choices=TYPE_CHOICES,
        help_text=_('Kind of event')
    )

    related_trade = models.ForeignKey(
        Trade,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications',
        help_text=_('Trade the event concerns')
    )

    related_user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text=_('User who caused the event')
    )

    message = models.CharField(
        _('message'),
        max_length=500,
        help_text=_('Human readable summary')
    )

    is_read = models.BooleanField(_('read'), default=False)

    created_at = models.DateTimeField(_('created at'), default=timezone.now)

    class Meta:
        verbose_name = _('notification')
        verbose_name_plural = _('notifications')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'is_read'], name='core_notif_recipient_idx'),
            models.Index(fields=['created_at'], name='core_notif_created_idx'),
        ]

    def __str__(self):
        return f"{self.type} for {self.recipient_id}"


# ============================================================================
# Wishlist
# ============================================================================

class WishlistItem(models.Model):
    """A book a user is looking for, matched against available listings."""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='wishlist_items',
        help_text=_('User who wants the book')
    )

    title = models.CharField(_('title'), max_length=200)

    author = models.CharField(_('author'), max_length=200, blank=True, default='')

    isbn = models.CharField(
        _('ISBN'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_isbn]
    )

    notes = models.TextField(_('notes'), max_length=500, blank=True, default='')

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('wishlist item')
        verbose_name_plural = _('wishlist items')
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'isbn'],
                condition=~Q(isbn=''),
                name='unique_wishlist_isbn_per_user'
            ),
        ]
        indexes = [
            models.Index(fields=['user'], name='core_wishlist_user_idx'),
        ]

    def __str__(self):
        return f"{self.title} wished by {self.user_id}"

    def clean(self):
        super().clean()
        self.isbn = normalize_isbn(self.isbn)

        if self.title is not None and not self.title.strip():
            raise ValidationError({
                'title': _('Title cannot be empty.')
            })

    def save(self, *args, **kwargs):
        """
        Normalize the ISBN before saving.

        full_clean() is not called so duplicate ISBNs raise IntegrityError.
        """
        self.isbn = normalize_isbn(self.isbn)
        super().save(*args, **kwargs)
