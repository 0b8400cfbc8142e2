"""
Wishlist matching against available books.

Each wishlist item is matched in three levels and the first level that finds
anything wins:

1. exact ISBN match (score 100)
2. case-insensitive exact title and author match (score 90)
3. fuzzy title match: titles containing the wished title, scored by
   normalized Levenshtein similarity and kept at 60 or above
"""

from collections import namedtuple

from django.conf import settings
from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from .models import Book

BookMatch = namedtuple('BookMatch', ['book', 'match_type', 'score'])

EXACT_SCORE = 100
STRONG_SCORE = 90


def candidate_books(user_id):
    """Available books owned by anyone but ``user_id``."""
    return Book.objects.filter(is_available=True).exclude(owner_id=user_id).select_related('owner')


def find_matches_for_item(item, limit=None):
    """
    Find available books matching one wishlist item.

    Args:
        item: WishlistItem to match
        limit: Maximum number of matches (defaults to WISHLIST_MATCH_LIMIT)

    Returns:
        list[BookMatch]: Matches from the first level that produced any
    """
    if limit is None:
        limit = settings.WISHLIST_MATCH_LIMIT

    books = candidate_books(item.user_id)

    if item.isbn:
        exact = list(books.filter(isbn=item.isbn)[:limit])
        if exact:
            return [BookMatch(book, 'exact', EXACT_SCORE) for book in exact]

    if item.author:
        strong = list(books.filter(title__iexact=item.title, author__iexact=item.author)[:limit])
        if strong:
            return [BookMatch(book, 'strong', STRONG_SCORE) for book in strong]

    fuzzy_pool = {book.pk: book for book in books.filter(title__icontains=item.title)[:limit]}
    if not fuzzy_pool:
        return []

    threshold = settings.WISHLIST_FUZZY_THRESHOLD
    scored = process.extract(
        item.title,
        {pk: book.title for pk, book in fuzzy_pool.items()},
        scorer=Levenshtein.normalized_similarity,
        processor=str.lower,
        limit=limit
    )
    matches = []
    for _title, similarity, pk in scored:
        score = round(similarity * 100)
        if score >= threshold:
            matches.append(BookMatch(fuzzy_pool[pk], 'fuzzy', score))
    return matches


def find_wishlist_matches(user):
    """
    Match every wishlist item of ``user``.

    Returns:
        list[tuple]: (wishlist_item, [BookMatch, ...]) for items with matches
    """
    results = []
    for item in user.wishlist_items.all():
        matches = find_matches_for_item(item)
        if matches:
            results.append((item, matches))
    return results
