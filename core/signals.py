"""
Django signals for automatic rating recalculation.

Signal receivers recompute the rated user's aggregate whenever a rating is
created, updated or deleted. They run inside the same transaction as the
rating write, so a failed recompute rolls the rating back as well.
"""

import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Rating, User
from .ratings import recalculate_user_rating

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Rating)
def update_rating_on_save(sender, instance, created, **kwargs):
    """
    Recompute the rated user's aggregate after a rating is saved.

    Args:
        sender: The Rating model class
        instance: The Rating instance that was saved
        created: Boolean indicating if this is a new rating
        **kwargs: Additional keyword arguments
    """
    try:
        recalculate_user_rating(instance.rated_user_id)
    except Exception as e:
        logger.error(
            f"Error recalculating rating for user {instance.rated_user_id} "
            f"after rating {instance.pk} was {'created' if created else 'updated'}: {e}",
            exc_info=True
        )
        raise


@receiver(post_delete, sender=Rating)
def update_rating_on_delete(sender, instance, **kwargs):
    """Recompute the rated user's aggregate after a rating is deleted."""
    try:
        recalculate_user_rating(instance.rated_user_id)
    except User.DoesNotExist:
        # Rated user is being deleted together with their ratings
        return
    except Exception as e:
        logger.error(
            f"Error recalculating rating for user {instance.rated_user_id} "
            f"after rating {instance.pk} was deleted: {e}",
            exc_info=True
        )
        raise
