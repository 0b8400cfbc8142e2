"""
Django admin configuration for BookVerse models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import Book, Message, Notification, Rating, Trade, User, WishlistItem


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for the custom User model.

    Rating aggregates are shown read-only; they are maintained from ratings.
    """

    list_display = [
        'email',
        'username',
        'name',
        'city',
        'average_rating',
        'rating_count',
        'is_staff',
        'is_active',
        'created_at',
    ]

    list_filter = ['show_city', 'is_staff', 'is_superuser', 'is_active', 'created_at']

    search_fields = ['email', 'username', 'name', 'city']

    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        (_('Profile'), {
            'fields': ('name', 'email', 'city', 'show_city')
        }),
        (_('Reputation'), {
            'fields': ('average_rating', 'rating_count')
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'name', 'password1', 'password2'),
        }),
    )

    readonly_fields = [
        'average_rating',
        'rating_count',
        'created_at',
        'updated_at',
        'last_login',
        'date_joined',
    ]

    list_per_page = 25


@admin.register(Book)
class BookAdmin(admin.ModelAdmin):
    list_display = ['title', 'author', 'owner', 'genre', 'condition', 'is_available', 'created_at']
    list_filter = ['is_available', 'condition', 'genre']
    search_fields = ['title', 'author', 'isbn', 'owner__email']
    readonly_fields = ['created_at', 'updated_at']
    list_per_page = 25


@admin.register(Trade)
class TradeAdmin(admin.ModelAdmin):
    """
    Trades are inspected here but not edited: status changes must go through
    the API so transitions stay checked.
    """
    list_display = ['id', 'proposer', 'receiver', 'requested_book', 'offered_book', 'status', 'proposed_at']
    list_filter = ['status', 'proposed_at']
    search_fields = ['proposer__email', 'receiver__email', 'requested_book__title']
    readonly_fields = [
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
    date_hierarchy = 'proposed_at'
    list_per_page = 25


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ['trade', 'rater', 'rated_user', 'stars', 'created_at']
    list_filter = ['stars', 'created_at']
    search_fields = ['rater__email', 'rated_user__email', 'comment']
    readonly_fields = ['trade', 'rater', 'rated_user', 'stars', 'created_at']


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['trade', 'sender', 'created_at']
    search_fields = ['sender__email', 'content']
    readonly_fields = ['trade', 'sender', 'content', 'created_at']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['recipient', 'type', 'is_read', 'created_at']
    list_filter = ['type', 'is_read']
    search_fields = ['recipient__email', 'message']


@admin.register(WishlistItem)
class WishlistItemAdmin(admin.ModelAdmin):
    list_display = ['title', 'author', 'isbn', 'user', 'created_at']
    search_fields = ['title', 'author', 'isbn', 'user__email']
