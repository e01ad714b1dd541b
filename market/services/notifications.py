# services/notifications.py
import logging

from django.db import DatabaseError, transaction
from django.db.models import Count, Q

from market.i18n import translate
from market.models import Notification, User
from market.services.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def notify(user, notification_type, key, related_booking=None, related_job=None, related_user=None, **params):
    """
    Crée une notification dans la langue du destinataire.
    Effet de bord non critique : l'échec est journalisé, jamais propagé.
    """
    locale = getattr(user, 'preferred_language', None)
    try:
        # savepoint : un échec ne doit pas casser la transaction appelante
        with transaction.atomic():
            return Notification.objects.create(
                user=user,
                type=notification_type,
                title=translate(f"notifications.{key}.title", locale),
                message=translate(f"notifications.{key}.message", locale, **params),
                related_booking=related_booking,
                related_job=related_job,
                related_user=related_user,
            )
    except (DatabaseError, KeyError, ValueError):
        logger.exception("Notification %s non créée pour l'utilisateur %s", notification_type, user.pk)
        return None


def notify_admins(notification_type, key, **params):
    admins = User.objects.filter(Q(role='admin') | Q(is_staff=True), is_active=True)
    for admin in admins:
        notify(admin, notification_type, key, **params)


def list_notifications(user, unread_only=False):
    qs = Notification.objects.filter(user=user)
    if unread_only:
        qs = qs.filter(is_read=False)
    return qs.order_by('-created_at', '-id')


def _get_own(user, notification_id):
    try:
        return Notification.objects.get(pk=notification_id, user=user)
    except Notification.DoesNotExist:
        raise NotFound("Notification not found")


def set_read(user, notification_id, is_read=True):
    notification = _get_own(user, notification_id)
    if notification.is_read != is_read:
        notification.is_read = is_read
        notification.save(update_fields=['is_read'])
    return notification


def mark_all_read(user) -> int:
    return Notification.objects.filter(user=user, is_read=False).update(is_read=True)


def bulk_update(user, ids, is_read=True) -> int:
    if not ids:
        raise ValidationFailed("No notification ids provided")
    return Notification.objects.filter(user=user, pk__in=ids).update(is_read=is_read)


def delete_notification(user, notification_id):
    _get_own(user, notification_id).delete()


def notification_stats(user):
    qs = Notification.objects.filter(user=user)
    by_type = {row['type']: row['n'] for row in qs.values('type').annotate(n=Count('id')).order_by()}
    return {
        "total": qs.count(),
        "unread": qs.filter(is_read=False).count(),
        "by_type": by_type,
    }
