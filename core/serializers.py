"""
Serializers for the BookVerse API.

User information leaving the API always goes through PublicUserSerializer,
which applies the user's privacy settings.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import Book, Message, Notification, Rating, Trade, WishlistItem

User = get_user_model()


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Custom serializer to use email instead of username for authentication.
    """
    username_field = 'email'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if 'username' in self.fields:
            del self.fields['username']
        if 'email' not in self.fields:
            self.fields['email'] = serializers.EmailField()


# ============================================================================
# Users
# ============================================================================

class PublicUserSerializer(serializers.ModelSerializer):
    """
    Public view of a user.

    Email is never exposed. City is omitted unless the user has show_city
    enabled.
    """

    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'city',
            'show_city',
            'average_rating',
            'rating_count',
            'created_at',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not instance.show_city:
            data.pop('city', None)
        return data


class OwnProfileSerializer(serializers.ModelSerializer):
    """
    The authenticated user's own profile.

    Only name, city and show_city can be changed here. Rating fields are
    derived and stay read-only.
    """

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'name',
            'city',
            'show_city',
            'average_rating',
            'rating_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'id',
            'username',
            'email',
            'average_rating',
            'rating_count',
            'created_at',
            'updated_at',
        ]

    def validate_name(self, value):
        return value.strip()

    def validate_city(self, value):
        return value.strip()


# ============================================================================
# Books
# ============================================================================

class BookSummarySerializer(serializers.ModelSerializer):
    """Compact book representation embedded in trades."""

    owner = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Book
        fields = ['id', 'title', 'author', 'condition', 'image_url', 'is_available', 'owner']
        read_only_fields = fields


class BookSerializer(serializers.ModelSerializer):
    """
    Serializer for listing, creating and updating books.

    The owner is always the requesting user and cannot be set by the client.
    """

    owner = PublicUserSerializer(read_only=True)

    class Meta:
        model = Book
        fields = [
            'id',
            'owner',
            'title',
            'author',
            'isbn',
            'genre',
            'condition',
            'description',
            'image_url',
            'publication_year',
            'publisher',
            'is_available',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'owner', 'created_at', 'updated_at']

    def _required_text(self, value, label):
        value = value.strip()
        if not value:
            raise serializers.ValidationError(f"{label} cannot be empty.")
        return value

    def validate_title(self, value):
        return self._required_text(value, 'Title')

    def validate_author(self, value):
        return self._required_text(value, 'Author')

    def validate_genre(self, value):
        return self._required_text(value, 'Genre')

    def validate_description(self, value):
        return value.strip()

    def validate_publisher(self, value):
        return value.strip()


class BookMatchSerializer(BookSerializer):
    """A book found for a wishlist item, with how well it matched."""

    match_type = serializers.CharField(read_only=True)
    match_score = serializers.IntegerField(read_only=True)

    class Meta(BookSerializer.Meta):
        fields = BookSerializer.Meta.fields + ['match_type', 'match_score']
        read_only_fields = BookSerializer.Meta.fields + ['match_type', 'match_score']


# ============================================================================
# Trades
# ============================================================================

class TradeSerializer(serializers.ModelSerializer):
    """Trade with both parties and both books resolved."""

    proposer = PublicUserSerializer(read_only=True)
    receiver = PublicUserSerializer(read_only=True)
    requested_book = BookSummarySerializer(read_only=True)
    offered_book = BookSummarySerializer(read_only=True)

    class Meta:
        model = Trade
        fields = [
            'id',
            'proposer',
            'receiver',
            'requested_book',
            'offered_book',
            'status',
            'proposed_at',
            'responded_at',
            'completed_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class TradeSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Trade
        fields = ['id', 'status', 'proposed_at', 'completed_at']
        read_only_fields = fields


# ============================================================================
# Ratings
# ============================================================================

class RatingSerializer(serializers.ModelSerializer):
    """Rating with rater, rated user and trade resolved."""

    rater = PublicUserSerializer(read_only=True)
    rated_user = PublicUserSerializer(read_only=True)
    trade = TradeSummarySerializer(read_only=True)

    class Meta:
        model = Rating
        fields = ['id', 'trade', 'rater', 'rated_user', 'stars', 'comment', 'created_at']
        read_only_fields = fields


# ============================================================================
# Messages
# ============================================================================

class MessageSerializer(serializers.ModelSerializer):
    sender = PublicUserSerializer(read_only=True)
    trade = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'trade', 'sender', 'content', 'created_at']
        read_only_fields = fields


# ============================================================================
# Notifications
# ============================================================================

class NotificationSerializer(serializers.ModelSerializer):
    related_trade = serializers.PrimaryKeyRelatedField(read_only=True)
    related_user = PublicUserSerializer(read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'type', 'message', 'is_read', 'related_trade', 'related_user', 'created_at']
        read_only_fields = fields


# ============================================================================
# Wishlist
# ============================================================================

class WishlistItemSerializer(serializers.ModelSerializer):
    """
    Serializer for wishlist items.

    Fields:
    - title: Required, up to 200 characters
    - author: Optional, up to 200 characters
    - isbn: Optional, unique per user when given
    - notes: Optional, up to 500 characters
    """

    user = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = WishlistItem
        fields = ['id', 'user', 'title', 'author', 'isbn', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['id', 'user', 'created_at', 'updated_at']
        # Per-user ISBN uniqueness is reported by the view as a conflict
        validators = []

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be empty.")
        return value

    def validate_author(self, value):
        return value.strip()

    def validate_isbn(self, value):
        return value.strip()

    def validate_notes(self, value):
        return value.strip()
