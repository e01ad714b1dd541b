import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from .models import ServiceBooking, TaskerProfile
from .services.notifications import notify

logger = logging.getLogger(__name__)


@shared_task(max_retries=3, default_retry_delay=10)
def send_otp_email(email, code, ttl_minutes):
    send_mail(
        subject="Votre code de vérification / Your verification code",
        message=(
            f"Votre code de vérification est : {code}\n"
            f"Il expire dans {ttl_minutes} minutes.\n\n"
            f"Your verification code is: {code}\n"
            f"It expires in {ttl_minutes} minutes."
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[email],
    )


@shared_task(max_retries=3, default_retry_delay=10)
def notify_booking_status(booking_id, status):
    booking = (ServiceBooking.objects.select_related('customer', 'tasker', 'tasker_service')
               .filter(pk=booking_id).first())
    if booking is None:
        logger.warning("notify_booking_status : réservation %s introuvable", booking_id)
        return None

    # l'annulation côté client est déjà notifiée au tasker par l'action
    if status == 'cancelled' and booking.cancelled_by_id != booking.tasker_id:
        return None

    notification = notify(
        booking.customer, 'booking_status', 'booking_status',
        related_booking=booking, related_user=booking.tasker,
        service=booking.tasker_service.title, status=status,
    )
    return notification.pk if notification else None


@shared_task
def send_profile_completion_reminders():
    sent = 0
    for profile in TaskerProfile.objects.select_related('user').filter(user__is_active=True):
        percent = profile.profile_completion()
        if percent < 100:
            notify(profile.user, 'profile_incomplete', 'profile_incomplete', percent=percent)
            sent += 1
    return sent
