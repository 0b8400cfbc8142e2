"""
API views for BookVerse.

Successful responses use the envelope {"success": true, "data": ...}.
Errors are raised as coded exceptions and rendered by
core.exceptions.custom_exception_handler.
"""

import logging

from django.db import IntegrityError, transaction
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView

from . import services
from .exceptions import BadRequestError, ConflictError, NotAuthorizedError, ResourceNotFoundError
from .matching import find_wishlist_matches
from .models import Book, Notification, Rating, WishlistItem
from .permissions import CanDeleteBook, IsBookOwner, IsNotificationRecipient, IsWishlistOwner
from .serializers import (
    BookMatchSerializer,
    BookSerializer,
    EmailTokenObtainPairSerializer,
    MessageSerializer,
    NotificationSerializer,
    OwnProfileSerializer,
    PublicUserSerializer,
    RatingSerializer,
    TradeSerializer,
    WishlistItemSerializer,
)
from .validators import normalize_isbn, parse_object_id

logger = logging.getLogger(__name__)


def success_response(data=None, message=None, status_code=status.HTTP_200_OK, **extra):
    body = {'success': True, 'data': data}
    body.update(extra)
    if message:
        body['message'] = message
    return Response(body, status=status_code)


def request_object(request, message, code):
    """The parsed JSON body, refused with a coded 400 unless it is an object."""
    if not isinstance(request.data, dict):
        raise BadRequestError(message, code)
    return request.data


class ClientIPMixin:
    """Adds get_client_ip() for audit logging."""

    def get_client_ip(self, request):
        """
        Get client IP address from request.
        Handles proxy headers for accurate IP detection.
        """
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            ip = x_forwarded_for.split(',')[0].strip()
        else:
            ip = request.META.get('REMOTE_ADDR')
        return ip


# ============================================================================
# Authentication and Users
# ============================================================================

class EmailTokenObtainPairView(TokenObtainPairView):
    """
    Custom view to use email-based authentication instead of username.
    """
    serializer_class = EmailTokenObtainPairSerializer


class CurrentUserView(APIView):
    """
    API endpoint for the authenticated user's own profile.

    GET /api/users/me/
    PATCH /api/users/me/
    Request body (all optional): {"name": "...", "city": "...", "show_city": false}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return success_response(OwnProfileSerializer(request.user).data)

    def patch(self, request):
        serializer = OwnProfileSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"Profile updated for user {request.user.id}")
        return success_response(serializer.data, message='Profile updated successfully')


class UserProfileView(APIView):
    """
    Public profile of a user with privacy settings applied.

    GET /api/users/<user_id>/

    Error responses:
    - 400 INVALID_USER_ID
    - 404 USER_NOT_FOUND
    """
    permission_classes = [AllowAny]

    def get(self, request, user_id):
        user = services.load_user(user_id)
        return success_response(PublicUserSerializer(user).data)


# ============================================================================
# Books
# ============================================================================

class BookPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'limit'
    max_page_size = 100

    def get_paginated_response(self, data):
        return success_response({
            'books': data,
            'pagination': {
                'page': self.page.number,
                'limit': self.get_page_size(self.request),
                'total': self.page.paginator.count,
                'pages': self.page.paginator.num_pages,
            },
        })


class BookListCreateView(APIView):
    """
    API endpoint for browsing and listing books.

    GET /api/books/ (public)
    Query Parameters:
    - title, author: case-insensitive partial match
    - genre: case-insensitive exact match
    - city: owner's city, only for owners who show it
    - page, limit: pagination

    POST /api/books/ (authenticated)
    Request body: {"title": "...", "author": "...", "genre": "...", "condition": "Good", ...}
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request):
        queryset = Book.objects.filter(is_available=True).select_related('owner')

        title = request.query_params.get('title', '').strip()
        if title:
            queryset = queryset.filter(title__icontains=title)

        author = request.query_params.get('author', '').strip()
        if author:
            queryset = queryset.filter(author__icontains=author)

        genre = request.query_params.get('genre', '').strip()
        if genre:
            queryset = queryset.filter(genre__iexact=genre)

        city = request.query_params.get('city', '').strip()
        if city:
            queryset = queryset.filter(owner__city__iexact=city, owner__show_city=True)

        paginator = BookPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(BookSerializer(page, many=True).data)

    def post(self, request):
        serializer = BookSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        book = serializer.save(owner=request.user)
        logger.info(f"Book {book.pk} listed by user {request.user.id}")
        return success_response(
            BookSerializer(book).data,
            message='Book created successfully',
            status_code=status.HTTP_201_CREATED
        )


class BookDetailView(ClientIPMixin, APIView):
    """
    API endpoint for a single book.

    GET /api/books/<book_id>/ (public)
    PUT|PATCH /api/books/<book_id>/ (owner only)
    DELETE /api/books/<book_id>/ (owner only, refused while the book is in an active trade)

    Error responses:
    - 400 INVALID_BOOK_ID
    - 403 UNAUTHORIZED_UPDATE / UNAUTHORIZED_DELETE
    - 404 BOOK_NOT_FOUND
    - 409 BOOK_HAS_ACTIVE_TRADES
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_book(self, book_id, for_update=False):
        pk = parse_object_id(book_id)
        if pk is None:
            raise BadRequestError('Invalid book ID format', 'INVALID_BOOK_ID')
        queryset = Book.objects.select_related('owner')
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=pk)
        except Book.DoesNotExist:
            raise ResourceNotFoundError('Book not found', 'BOOK_NOT_FOUND')

    def check_owner(self, request, book, permission):
        if not permission.has_object_permission(request, self, book):
            logger.warning(
                f"Unauthorized book modification attempt. "
                f"Book ID: {book.pk}, "
                f"User ID: {request.user.id}, "
                f"IP: {self.get_client_ip(request)}"
            )
            raise NotAuthorizedError(permission.message, permission.code)

    def get(self, request, book_id):
        return success_response(BookSerializer(self.get_book(book_id)).data)

    def put(self, request, book_id):
        book = self.get_book(book_id)
        self.check_owner(request, book, IsBookOwner())

        serializer = BookSerializer(book, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        book = serializer.save()
        logger.info(f"Book {book.pk} updated by user {request.user.id}")
        return success_response(BookSerializer(book).data, message='Book updated successfully')

    patch = put

    def delete(self, request, book_id):
        with transaction.atomic():
            book = self.get_book(book_id, for_update=True)
            self.check_owner(request, book, CanDeleteBook())

            active_trade_ids = list(book.active_trades().values_list('pk', flat=True))
            if active_trade_ids:
                raise ConflictError(
                    'Cannot delete a book that is part of an active trade',
                    'BOOK_HAS_ACTIVE_TRADES',
                    details={'active_trades': active_trade_ids}
                )

            book.delete()

        logger.info(
            f"Book {book_id} deleted by user {request.user.id}, "
            f"IP: {self.get_client_ip(request)}"
        )
        return success_response(message='Book deleted successfully')


class UserBooksView(APIView):
    """
    Available books of one user.

    GET /api/books/user/<user_id>/
    """
    permission_classes = [AllowAny]

    def get(self, request, user_id):
        user = services.load_user(user_id)
        books = Book.objects.filter(owner=user, is_available=True).select_related('owner')
        data = BookSerializer(books, many=True).data
        return success_response(data, count=len(data))


# ============================================================================
# Trades
# ============================================================================

class TradeListCreateView(ClientIPMixin, APIView):
    """
    API endpoint for proposing and listing trades.

    POST /api/trades/
    Headers: Authorization: Bearer <access_token>
    Request body: {"requestedBook": 12, "offeredBook": 7}
    (snake_case requested_book / offered_book are also read)

    Success response (201):
    {
        "success": true,
        "data": {
            "id": 3,
            "proposer": {...},
            "receiver": {...},
            "requested_book": {...},
            "offered_book": {...},
            "status": "proposed",
            "proposed_at": "2025-12-08T10:00:00Z",
            ...
        },
        "message": "Trade proposed successfully"
    }

    GET /api/trades/?status=accepted
    Trades where the user is proposer or receiver, newest first.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        trades = services.trades_for_user(request.user, request.query_params.get('status'))
        data = TradeSerializer(trades, many=True).data
        return success_response(data, count=len(data))

    def post(self, request):
        body = request_object(
            request,
            'Both requested book and offered book are required',
            'MISSING_REQUIRED_FIELDS'
        )
        requested_book = body.get('requestedBook', body.get('requested_book'))
        offered_book = body.get('offeredBook', body.get('offered_book'))
        try:
            trade = services.propose_trade(request.user, requested_book, offered_book)
        except NotAuthorizedError:
            logger.warning(
                f"Trade proposal refused. "
                f"User ID: {request.user.id}, "
                f"Offered book: {offered_book}, "
                f"IP: {self.get_client_ip(request)}"
            )
            raise

        return success_response(
            TradeSerializer(trade).data,
            message='Trade proposed successfully',
            status_code=status.HTTP_201_CREATED
        )


class TradeDetailView(APIView):
    """
    A single trade, visible to its two parties.

    GET /api/trades/<trade_id>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, trade_id):
        trade = services.get_trade_for_party(trade_id, request.user)
        return success_response(TradeSerializer(trade).data)


class TradeTransitionView(ClientIPMixin, APIView):
    """
    Base view for trade status changes.

    PUT /api/trades/<trade_id>/<action>/

    Error responses:
    - 400 INVALID_TRADE_ID / INVALID_TRADE_STATUS
    - 403 NOT_AUTHORIZED
    - 404 TRADE_NOT_FOUND
    """
    permission_classes = [IsAuthenticated]
    target_status = None
    success_message = None

    def put(self, request, trade_id):
        try:
            trade = services.transition_trade(trade_id, request.user, self.target_status)
        except NotAuthorizedError:
            logger.warning(
                f"Unauthorized trade status update attempt. "
                f"Trade ID: {trade_id}, "
                f"Target status: {self.target_status}, "
                f"User ID: {request.user.id}, "
                f"IP: {self.get_client_ip(request)}"
            )
            raise

        return success_response(TradeSerializer(trade).data, message=self.success_message)


class TradeAcceptView(TradeTransitionView):
    """Receiver accepts a proposed trade."""
    target_status = 'accepted'
    success_message = 'Trade accepted successfully'


class TradeDeclineView(TradeTransitionView):
    """Receiver declines a proposed trade."""
    target_status = 'declined'
    success_message = 'Trade declined successfully'


class TradeCompleteView(TradeTransitionView):
    """Either party marks an accepted trade as completed."""
    target_status = 'completed'
    success_message = 'Trade completed successfully'


# ============================================================================
# Ratings
# ============================================================================

class RatingCreateView(ClientIPMixin, APIView):
    """
    API endpoint for rating the other party of a completed trade.

    POST /api/ratings/
    Headers: Authorization: Bearer <access_token>
    Request body: {"trade": 3, "stars": 2, "comment": "Book was damaged"}

    Success response (201):
    {
        "success": true,
        "data": {
            "id": 1,
            "trade": {"id": 3, "status": "completed", ...},
            "rater": {...},
            "rated_user": {...},
            "stars": 2,
            "comment": "Book was damaged",
            "created_at": "2025-12-08T16:00:00Z"
        },
        "message": "Rating submitted successfully"
    }

    Error responses:
    - 400 MISSING_TRADE_ID / MISSING_STARS / INVALID_STARS / COMMENT_REQUIRED /
          INVALID_TRADE_ID / TRADE_NOT_COMPLETED
    - 403 NOT_AUTHORIZED
    - 404 TRADE_NOT_FOUND
    - 409 DUPLICATE_RATING
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        body = request_object(request, 'Trade ID is required', 'MISSING_TRADE_ID')
        try:
            rating = services.submit_rating(
                request.user,
                body.get('trade'),
                body.get('stars'),
                body.get('comment')
            )
        except (NotAuthorizedError, ConflictError) as e:
            logger.warning(
                f"Rating refused ({e.code}). "
                f"Trade ID: {body.get('trade')}, "
                f"User ID: {request.user.id}, "
                f"IP: {self.get_client_ip(request)}"
            )
            raise

        return success_response(
            RatingSerializer(rating).data,
            message='Rating submitted successfully',
            status_code=status.HTTP_201_CREATED
        )


class TradeRatingView(APIView):
    """
    The authenticated user's rating for a trade.

    GET /api/ratings/trade/<trade_id>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, trade_id):
        rating = services.rating_for_trade(trade_id, request.user)
        return success_response(RatingSerializer(rating).data)


class UserRatingsView(APIView):
    """
    Ratings a user received, newest first, with their aggregate.

    GET /api/ratings/user/<user_id>/ (public)

    Success response (200):
    {
        "success": true,
        "data": {
            "user": {...},
            "average_rating": 4.5,
            "rating_count": 2,
            "ratings": [...]
        }
    }
    """
    permission_classes = [AllowAny]

    def get(self, request, user_id):
        user = services.load_user(user_id)
        ratings = Rating.objects.filter(rated_user=user).select_related(
            'rater', 'rated_user', 'trade'
        )
        return success_response({
            'user': PublicUserSerializer(user).data,
            'average_rating': user.average_rating,
            'rating_count': user.rating_count,
            'ratings': RatingSerializer(ratings, many=True).data,
        })


# ============================================================================
# Messages
# ============================================================================

class MessageCreateView(ClientIPMixin, APIView):
    """
    API endpoint for sending a message on an accepted trade.

    POST /api/messages/
    Request body: {"trade": 3, "content": "Meet at the library?"}

    Error responses:
    - 400 MISSING_REQUIRED_FIELDS / INVALID_TRADE_ID / EMPTY_CONTENT /
          CONTENT_TOO_LONG / INVALID_TRADE_STATUS
    - 403 NOT_AUTHORIZED
    - 404 TRADE_NOT_FOUND
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        body = request_object(
            request, 'Trade ID and content are required', 'MISSING_REQUIRED_FIELDS'
        )
        try:
            message = services.send_message(
                request.user,
                body.get('trade'),
                body.get('content')
            )
        except NotAuthorizedError:
            logger.warning(
                f"Message refused for non-participant. "
                f"Trade ID: {body.get('trade')}, "
                f"User ID: {request.user.id}, "
                f"IP: {self.get_client_ip(request)}"
            )
            raise

        return success_response(
            MessageSerializer(message).data,
            message='Message sent successfully',
            status_code=status.HTTP_201_CREATED
        )


class TradeMessagesView(APIView):
    """
    Conversation of a trade, oldest first.

    GET /api/messages/trade/<trade_id>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, trade_id):
        messages = services.messages_for_trade(trade_id, request.user)
        data = MessageSerializer(messages, many=True).data
        return success_response(data, count=len(data))


# ============================================================================
# Notifications
# ============================================================================

class NotificationListView(APIView):
    """
    The authenticated user's notifications, newest first.

    GET /api/notifications/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        notifications = Notification.objects.filter(
            recipient=request.user
        ).select_related('related_user')
        unread_count = notifications.filter(is_read=False).count()
        return success_response(
            NotificationSerializer(notifications, many=True).data,
            unread_count=unread_count
        )


class NotificationReadView(APIView):
    """
    Mark one notification as read.

    PUT /api/notifications/<notification_id>/read/
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, notification_id):
        pk = parse_object_id(notification_id)
        if pk is None:
            raise BadRequestError('Invalid notification ID format', 'INVALID_ID')

        notification = Notification.objects.filter(pk=pk).first()
        if notification is None:
            raise ResourceNotFoundError('Notification not found', 'NOT_FOUND')

        permission = IsNotificationRecipient()
        if not permission.has_object_permission(request, self, notification):
            raise NotAuthorizedError(permission.message, permission.code)

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=['is_read'])

        return success_response(
            NotificationSerializer(notification).data,
            message='Notification marked as read'
        )


class NotificationReadAllView(APIView):
    """
    Mark every unread notification of the user as read.

    PUT /api/notifications/read-all/
    """
    permission_classes = [IsAuthenticated]

    def put(self, request):
        updated = Notification.objects.filter(
            recipient=request.user, is_read=False
        ).update(is_read=True)
        return success_response(
            {'count': updated},
            message=f'{updated} notification(s) marked as read'
        )


# ============================================================================
# Wishlist
# ============================================================================

class WishlistCreateView(APIView):
    """
    Add a book to the authenticated user's wishlist.

    POST /api/wishlist/
    Request body: {"title": "...", "author": "...", "isbn": "...", "notes": "..."}

    Error responses:
    - 400 VALIDATION_ERROR
    - 409 DUPLICATE_WISHLIST_ITEM
    """
    permission_classes = [IsAuthenticated]

    duplicate_message = 'This book is already in your wishlist'

    def post(self, request):
        serializer = WishlistItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item = WishlistItem(user=request.user, **serializer.validated_data)
        item.isbn = normalize_isbn(item.isbn)
        if item.isbn and WishlistItem.objects.filter(
            user=request.user, isbn=item.isbn
        ).exists():
            raise ConflictError(self.duplicate_message, 'DUPLICATE_WISHLIST_ITEM')

        try:
            with transaction.atomic():
                item.save()
        except IntegrityError:
            raise ConflictError(self.duplicate_message, 'DUPLICATE_WISHLIST_ITEM')

        logger.info(f"Wishlist item {item.pk} added by user {request.user.id}")
        return success_response(
            WishlistItemSerializer(item).data,
            message='Book added to wishlist successfully',
            status_code=status.HTTP_201_CREATED
        )


class UserWishlistView(APIView):
    """
    A user's wishlist, newest first.

    GET /api/wishlist/user/<user_id>/ (public)
    """
    permission_classes = [AllowAny]

    def get(self, request, user_id):
        user = services.load_user(user_id)
        data = WishlistItemSerializer(user.wishlist_items.all(), many=True).data
        return success_response(data, count=len(data))


class WishlistItemDeleteView(ClientIPMixin, APIView):
    """
    Remove an item from the authenticated user's wishlist.

    DELETE /api/wishlist/<item_id>/
    """
    permission_classes = [IsAuthenticated]

    def delete(self, request, item_id):
        pk = parse_object_id(item_id)
        if pk is None:
            raise BadRequestError('Invalid wishlist item ID format', 'INVALID_WISHLIST_ID')

        item = WishlistItem.objects.filter(pk=pk).first()
        if item is None:
            raise ResourceNotFoundError('Wishlist item not found', 'WISHLIST_ITEM_NOT_FOUND')

        permission = IsWishlistOwner()
        if not permission.has_object_permission(request, self, item):
            logger.warning(
                f"Unauthorized wishlist deletion attempt. "
                f"Item ID: {pk}, "
                f"User ID: {request.user.id}, "
                f"IP: {self.get_client_ip(request)}"
            )
            raise NotAuthorizedError(permission.message, permission.code)

        item.delete()
        return success_response(message='Book removed from wishlist successfully')


class WishlistMatchesView(APIView):
    """
    Available books from other users matching the caller's wishlist.

    GET /api/wishlist/matches/

    Success response (200):
    {
        "success": true,
        "data": [
            {
                "wishlist_item": {...},
                "matches": [{...book..., "match_type": "exact", "match_score": 100}]
            }
        ],
        "count": 1,
        "message": "Found 1 wishlist item(s) with available matches"
    }
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        results = []
        for item, matches in find_wishlist_matches(request.user):
            books = []
            for match in matches:
                match.book.match_type = match.match_type
                match.book.match_score = match.score
                books.append(match.book)
            results.append({
                'wishlist_item': WishlistItemSerializer(item).data,
                'matches': BookMatchSerializer(books, many=True).data,
            })

        if results:
            message = f'Found {len(results)} wishlist item(s) with available matches'
        else:
            message = 'No matches found for your wishlist items'

        return success_response(
            results,
            message=message,
            count=len(results)
        )
