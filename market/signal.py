import logging
from decimal import Decimal

from django.db import models, transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver
from django.utils import timezone

from market.models import User, UserStats, Review, ServiceBooking
from market.services.cache import revalidate_booking
from market.tasks import notify_booking_status

logger = logging.getLogger(__name__)


@receiver(post_save, sender=User)
def create_user_stats(sender, instance, created, **kwargs):
    if created:
        UserStats.objects.get_or_create(user=instance)


def refresh_review_stats(user_id):
    agg = Review.objects.filter(reviewee_id=user_id).aggregate(
        avg=models.Avg('overall_rating'), total=models.Count('id'))
    UserStats.objects.filter(user_id=user_id).update(
        tasker_rating=Decimal(str(round(agg['avg'] or 0, 2))),
        total_reviews=agg['total'],
        updated_at=timezone.now(),
    )


@receiver(post_save, sender=Review)
def update_rating_on_review(sender, instance: Review, created, **kwargs):
    refresh_review_stats(instance.reviewee_id)


@receiver(post_delete, sender=Review)
def update_rating_on_review_delete(sender, instance: Review, **kwargs):
    refresh_review_stats(instance.reviewee_id)


@receiver(post_save, sender=ServiceBooking)
def on_booking_saved(sender, instance: ServiceBooking, created: bool, update_fields=None, **kwargs):
    # invalidation au commit uniquement
    transaction.on_commit(lambda: revalidate_booking(instance))

    # Ne notifier que les changements de statut
    if created or not update_fields or 'status' not in update_fields:
        return

    booking_id, status = instance.pk, instance.status

    def dispatch():
        try:
            notify_booking_status.delay(booking_id, status)
        except Exception:
            logger.exception("Échec d'envoi de la tâche Celery notify_booking_status")

    transaction.on_commit(dispatch)
