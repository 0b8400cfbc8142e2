"""
Rating aggregate computation.

A user's ``average_rating`` and ``rating_count`` are always derived from the
full set of ratings they received. The aggregate is recomputed by scanning
those ratings, never adjusted incrementally.
"""

import logging
from collections import namedtuple

from django.db import transaction

from .models import Rating, User

logger = logging.getLogger(__name__)

RatingAggregate = namedtuple('RatingAggregate', ['average', 'count'])


def compute_rating_aggregate(stars):
    """
    Compute the mean and count of a collection of star values.

    Args:
        stars: Iterable of integer star values

    Returns:
        RatingAggregate: (average, count), with (0.0, 0) for no ratings
    """
    values = list(stars)
    if not values:
        return RatingAggregate(0.0, 0)
    return RatingAggregate(sum(values) / len(values), len(values))


def recalculate_user_rating(user_id):
    """
    Recompute and persist the rating aggregate of one user.

    Locks the user row so concurrent recomputes for the same user serialize.
    When called inside a rating insert's transaction, the new rating is
    included in the scan.

    Returns:
        RatingAggregate: The values written to the user
    """
    with transaction.atomic():
        User.objects.select_for_update().only('pk').get(pk=user_id)

        stars = Rating.objects.filter(rated_user_id=user_id).values_list('stars', flat=True)
        aggregate = compute_rating_aggregate(stars)

        # update() skips User.save() and its full_clean()
        User.objects.filter(pk=user_id).update(
            average_rating=aggregate.average,
            rating_count=aggregate.count
        )

    logger.info(
        f"Recalculated rating for user {user_id}: "
        f"average={aggregate.average:.2f}, count={aggregate.count}"
    )
    return aggregate
