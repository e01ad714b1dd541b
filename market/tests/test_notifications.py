import pytest
from django.db import DatabaseError

from market.models import Notification
from market.services import notifications
from market.services.errors import NotFound, ValidationFailed

pytestmark = pytest.mark.django_db


@pytest.fixture
def inbox(customer):
    return [
        notifications.notify(customer, 'booking_status', 'booking_status', service="Ménage", status="accepted"),
        notifications.notify(customer, 'message_received', 'message_received', sender="Youssef", preview="Salut"),
        notifications.notify(customer, 'booking_status', 'booking_status', service="Ménage", status="completed"),
    ]


def test_notify_uses_recipient_language(customer, tasker):
    tasker.preferred_language = 'en'
    tasker.save(update_fields=['preferred_language'])

    fr = notifications.notify(customer, 'booking_status', 'booking_status', service="Ménage", status="accepted")
    en = notifications.notify(tasker, 'booking_status', 'booking_status', service="Cleaning", status="accepted")

    assert fr.title == "Mise à jour de la réservation"
    assert en.title == "Booking update"
    assert en.message == 'Your booking for "Cleaning" is now accepted.'


def test_notify_failure_is_swallowed(customer, monkeypatch):
    def boom(**kwargs):
        raise DatabaseError("notifications table locked")

    monkeypatch.setattr(Notification.objects, 'create', boom)

    assert notifications.notify(customer, 'booking_status', 'booking_status', service="x", status="y") is None


def test_notify_admins(admin_user, customer):
    notifications.notify_admins('wallet_refund_request_created', 'refund_created',
                                reference="REF-1", amount=100, currency="MAD")

    assert Notification.objects.filter(user=admin_user).count() == 1
    assert not Notification.objects.filter(user=customer).exists()


def test_read_unread_and_stats(customer, inbox):
    notifications.set_read(customer, inbox[0].pk)

    stats = notifications.notification_stats(customer)
    assert stats == {"total": 3, "unread": 2, "by_type": {"booking_status": 2, "message_received": 1}}

    notifications.set_read(customer, inbox[0].pk, is_read=False)
    assert notifications.list_notifications(customer, unread_only=True).count() == 3


def test_mark_all_and_bulk(customer, inbox):
    assert notifications.bulk_update(customer, [inbox[0].pk, inbox[1].pk]) == 2
    assert notifications.mark_all_read(customer) == 1
    with pytest.raises(ValidationFailed):
        notifications.bulk_update(customer, [])


def test_cannot_touch_someone_elses_notification(tasker, inbox):
    with pytest.raises(NotFound):
        notifications.set_read(tasker, inbox[0].pk)
    with pytest.raises(NotFound):
        notifications.delete_notification(tasker, inbox[0].pk)
    assert notifications.bulk_update(tasker, [n.pk for n in inbox]) == 0


def test_api_notifications(customer_client, inbox):
    listing = customer_client.get("/api/notifications/?unread=1")
    assert listing.status_code == 200
    assert listing.data["count"] == 3
    assert listing.data["results"][0]["id"] == inbox[2].pk

    patched = customer_client.patch(f"/api/notifications/{inbox[2].pk}/", {"is_read": True}, format="json")
    assert patched.data["notification"]["is_read"] is True

    bulk = customer_client.post("/api/notifications/bulk/", {"ids": [inbox[0].pk], "is_read": True}, format="json")
    assert bulk.data["updated"] == 1

    stats = customer_client.get("/api/notifications/stats/")
    assert stats.data["stats"]["unread"] == 1

    deleted = customer_client.delete(f"/api/notifications/{inbox[1].pk}/")
    assert deleted.status_code == 200
    assert not Notification.objects.filter(pk=inbox[1].pk).exists()
