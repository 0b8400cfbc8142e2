"""
Custom permission classes for BookVerse.

Views check object permissions by hand so that a refusal can be logged and
reported with the permission's own error code.
"""

from rest_framework import permissions


class IsBookOwner(permissions.BasePermission):
    """
    Object-level permission allowing only the book's owner to change it.

    Usage:
        permission = IsBookOwner()
        if not permission.has_object_permission(request, view, book):
            ...
    """

    message = 'You can only modify your own books'
    code = 'UNAUTHORIZED_UPDATE'

    def has_object_permission(self, request, view, obj):
        """
        Check that the authenticated user owns the book.

        Args:
            request: HTTP request object
            view: View being accessed
            obj: Book instance

        Returns:
            bool: True if the user owns the book
        """
        if not request.user or not request.user.is_authenticated:
            return False
        return obj.owner_id == request.user.id


class CanDeleteBook(IsBookOwner):
    message = 'You can only delete your own books'
    code = 'UNAUTHORIZED_DELETE'


class IsWishlistOwner(permissions.BasePermission):
    """Only the owner of a wishlist item may remove it."""

    message = 'You can only remove items from your own wishlist'
    code = 'UNAUTHORIZED_WISHLIST_ACCESS'

    def has_object_permission(self, request, view, obj):
        if not request.user or not request.user.is_authenticated:
            return False
        return obj.user_id == request.user.id


class IsNotificationRecipient(permissions.BasePermission):
    """Only the recipient of a notification may mark it read."""

    message = 'You can only update your own notifications'
    code = 'FORBIDDEN'

    def has_object_permission(self, request, view, obj):
        if not request.user or not request.user.is_authenticated:
            return False
        return obj.recipient_id == request.user.id
