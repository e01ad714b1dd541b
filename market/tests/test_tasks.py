import pytest
from django.core import mail

from market import tasks
from market.models import Address, Notification, TaskerProfile, UserStats
from market.services import bookings
from market.tests.conftest import make_user

pytestmark = pytest.mark.django_db

FULL_WEEK = [{"day": "monday", "enabled": True, "startTime": "09:00", "endTime": "18:00"}]


def test_user_stats_created_with_user():
    user = make_user("new@example.com")
    assert UserStats.objects.filter(user=user).exists()


def test_send_otp_email():
    tasks.send_otp_email("someone@example.com", "482913", 10)

    assert mail.outbox[0].to == ["someone@example.com"]
    assert "482913" in mail.outbox[0].body
    assert "10 minutes" in mail.outbox[0].body


def test_status_change_notifies_customer_after_commit(customer, tasker, booking,
                                                      django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        bookings.update_booking_status(tasker, booking.pk, 'accepted')

    note = Notification.objects.get(user=customer, type='booking_status')
    assert note.related_booking_id == booking.pk
    assert "accept" in note.message


def test_no_task_without_status_change(customer, booking, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        booking.customer_requirements = "Apporter une échelle"
        booking.save(update_fields=['customer_requirements', 'updated_at'])

    assert not Notification.objects.filter(user=customer).exists()


def test_customer_cancellation_is_not_notified_twice(customer, tasker, booking,
                                                    django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        bookings.cancel_customer_booking(customer, booking.pk, "Plus besoin")

    assert Notification.objects.filter(user=tasker, type='booking_cancelled').count() == 1
    assert not Notification.objects.filter(user=customer, type='booking_status').exists()


def test_tasker_cancellation_reaches_customer(customer, tasker, booking_factory):
    booking = booking_factory(status='confirmed', cancelled_by=tasker)

    assert tasks.notify_booking_status(booking.pk, 'cancelled') is not None
    assert Notification.objects.filter(user=customer, type='booking_status').count() == 1


def test_notify_unknown_booking():
    assert tasks.notify_booking_status(999999, 'accepted') is None


def test_profile_completion_reminders(tasker, other_tasker):
    TaskerProfile.objects.create(user=tasker)
    other_tasker.first_name, other_tasker.last_name = "Karim", "Bennani"
    other_tasker.avatar_url = "https://cdn.example.com/karim.png"
    other_tasker.verification_status = 'verified'
    other_tasker.save()
    Address.objects.create(user=other_tasker, street_address="1 rue Fès", city="Fès", region="Fès-Meknès",
                           is_default=True)
    TaskerProfile.objects.create(
        user=other_tasker, bio="Électricien", identity_document_url="https://cdn.example.com/cin.pdf",
        operation_hours=FULL_WEEK,
    )

    assert tasks.send_profile_completion_reminders() == 1

    reminder = Notification.objects.get(type='profile_incomplete')
    assert reminder.user_id == tasker.pk
    assert not Notification.objects.filter(user=other_tasker).exists()



def test_reminders_have_a_single_beat_entry(settings):
    from taskmarket.celery import app

    entries = [entry for entry in app.conf.beat_schedule.values()
               if entry['task'] == 'market.tasks.send_profile_completion_reminders']
    assert len(entries) == 1
    assert not hasattr(settings, 'CELERY_BEAT_SCHEDULE')
