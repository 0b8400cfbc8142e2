"""
URL configuration for bookverse project.

Object IDs are captured as strings so malformed IDs reach the views and get
a coded 400 response instead of a routing 404.
"""
from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from core.views import (
    BookDetailView,
    BookListCreateView,
    CurrentUserView,
    EmailTokenObtainPairView,
    MessageCreateView,
    NotificationListView,
    NotificationReadAllView,
    NotificationReadView,
    RatingCreateView,
    TradeAcceptView,
    TradeCompleteView,
    TradeDeclineView,
    TradeDetailView,
    TradeListCreateView,
    TradeMessagesView,
    TradeRatingView,
    UserBooksView,
    UserProfileView,
    UserRatingsView,
    UserWishlistView,
    WishlistCreateView,
    WishlistItemDeleteView,
    WishlistMatchesView,
)


urlpatterns = [
    path('admin/', admin.site.urls),

    # Authentication endpoints
    path('api/auth/token/', EmailTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # User endpoints
    path('api/users/me/', CurrentUserView.as_view(), name='current_user'),
    path('api/users/<str:user_id>/', UserProfileView.as_view(), name='user_profile'),

    # Book endpoints
    path('api/books/', BookListCreateView.as_view(), name='book_list'),
    path('api/books/user/<str:user_id>/', UserBooksView.as_view(), name='user_books'),
    path('api/books/<str:book_id>/', BookDetailView.as_view(), name='book_detail'),

    # Trade endpoints
    path('api/trades/', TradeListCreateView.as_view(), name='trade_list'),
    path('api/trades/<str:trade_id>/', TradeDetailView.as_view(), name='trade_detail'),
    path('api/trades/<str:trade_id>/accept/', TradeAcceptView.as_view(), name='trade_accept'),
    path('api/trades/<str:trade_id>/decline/', TradeDeclineView.as_view(), name='trade_decline'),
    path('api/trades/<str:trade_id>/complete/', TradeCompleteView.as_view(), name='trade_complete'),

    # Rating endpoints
    path('api/ratings/', RatingCreateView.as_view(), name='rating_create'),
    path('api/ratings/trade/<str:trade_id>/', TradeRatingView.as_view(), name='trade_rating'),
    path('api/ratings/user/<str:user_id>/', UserRatingsView.as_view(), name='user_ratings'),

    # Message endpoints
    path('api/messages/', MessageCreateView.as_view(), name='message_create'),
    path('api/messages/trade/<str:trade_id>/', TradeMessagesView.as_view(), name='trade_messages'),

    # Notification endpoints
    path('api/notifications/', NotificationListView.as_view(), name='notification_list'),
    path('api/notifications/read-all/', NotificationReadAllView.as_view(), name='notification_read_all'),
    path('api/notifications/<str:notification_id>/read/', NotificationReadView.as_view(), name='notification_read'),

    # Wishlist endpoints
    path('api/wishlist/', WishlistCreateView.as_view(), name='wishlist_create'),
    path('api/wishlist/matches/', WishlistMatchesView.as_view(), name='wishlist_matches'),
    path('api/wishlist/user/<str:user_id>/', UserWishlistView.as_view(), name='user_wishlist'),
    path('api/wishlist/<str:item_id>/', WishlistItemDeleteView.as_view(), name='wishlist_item_delete'),
]
