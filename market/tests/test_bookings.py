from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import transaction
from django.utils import timezone

from market.models import Notification, ServiceBooking, Transaction, User, UserStats, WalletTransaction
from market.services import bookings
from market.services.errors import InvalidState, NotFound, Unauthorized, ValidationFailed
from market.services.fees import compute_platform_fee

pytestmark = pytest.mark.django_db


def _wallet(user):
    return User.objects.values_list('wallet_balance', flat=True).get(pk=user.pk)


# ---- Frais ----

@pytest.mark.parametrize("price, fee", [
    ("200", "20.00"),
    ("150.50", "15.05"),
    ("0.05", "0.01"),
    ("0", "0.00"),
])
def test_compute_platform_fee(price, fee):
    assert compute_platform_fee(Decimal(price)) == Decimal(fee)


# ---- Acceptation et règlement ----

def test_accept_settles_payment_and_deducts_fee(tasker, booking):
    booking = bookings.update_booking_status(tasker, booking.pk, 'accepted')

    assert booking.status == 'accepted'
    assert booking.accepted_at is not None
    assert _wallet(tasker) == Decimal('30.00')

    payment = Transaction.objects.get(booking=booking)
    assert payment.payment_status == 'paid'
    assert payment.amount == Decimal('200.00')
    assert payment.platform_fee == Decimal('20.00')
    assert payment.net_amount == Decimal('180.00')
    assert payment.processed_at is not None

    ledger = WalletTransaction.objects.get(user=tasker, related_booking=booking)
    assert ledger.transaction_type == 'fee_deduction'
    assert ledger.amount == Decimal('-20.00')
    assert ledger.balance_before == Decimal('50.00')
    assert ledger.balance_after == Decimal('30.00')

    note = Notification.objects.get(user=tasker, type='payment_confirmed')
    assert "Réparation fuite" in note.message


def test_accept_refused_when_wallet_cannot_cover_fee(tasker, booking):
    User.objects.filter(pk=tasker.pk).update(wallet_balance=Decimal('15.00'))

    with pytest.raises(InvalidState) as exc:
        bookings.update_booking_status(tasker, booking.pk, 'accepted')

    assert exc.value.message == bookings.INSUFFICIENT_FEE_BALANCE
    assert exc.value.code == 'insufficient_fee_balance'
    booking.refresh_from_db()
    assert booking.status == 'pending'
    assert _wallet(tasker) == Decimal('15.00')
    assert not Transaction.objects.filter(booking=booking).exists()
    assert not WalletTransaction.objects.exists()


@pytest.mark.parametrize("target", ['accepted', 'in_progress'])
def test_wallet_below_minimum_blocks_accept_and_start(tasker, booking_factory, target):
    User.objects.filter(pk=tasker.pk).update(wallet_balance=Decimal('5.00'))
    tasker.refresh_from_db()
    booking = booking_factory(status='pending' if target == 'accepted' else 'confirmed')

    with pytest.raises(InvalidState) as exc:
        bookings.update_booking_status(tasker, booking.pk, target, locale='en')

    assert exc.value.code == 'insufficient_wallet_balance'
    assert "below 10 MAD" in exc.value.message
    booking.refresh_from_db()
    assert booking.status in ('pending', 'confirmed')
    assert _wallet(tasker) == Decimal('5.00')


def test_insufficient_balance_message_is_localized(tasker, booking):
    User.objects.filter(pk=tasker.pk).update(wallet_balance=Decimal('1.00'))

    with pytest.raises(InvalidState) as fr:
        bookings.update_booking_status(tasker, booking.pk, 'accepted', locale='fr')
    with pytest.raises(InvalidState) as de:
        bookings.update_booking_status(tasker, booking.pk, 'accepted', locale='de')

    assert fr.value.message.startswith("Le solde de votre portefeuille")
    # pas de traduction allemande : retombe sur l'anglais
    assert de.value.message.startswith("Your wallet balance")


def test_settlement_is_idempotent(tasker, booking):
    with transaction.atomic():
        bookings.settle_acceptance(booking)
    with transaction.atomic():
        bookings.settle_acceptance(booking)

    assert Transaction.objects.filter(booking=booking, payment_status='paid').count() == 1
    assert WalletTransaction.objects.filter(related_booking=booking, transaction_type='fee_deduction').count() == 1
    assert _wallet(tasker) == Decimal('30.00')


def test_settlement_reuses_existing_pending_payment(tasker, customer, booking):
    pending = Transaction.objects.create(
        booking=booking, payer=customer, payee=tasker, transaction_type='cash_payment', amount=Decimal('0.00'),
    )

    bookings.update_booking_status(tasker, booking.pk, 'accepted')

    pending.refresh_from_db()
    assert Transaction.objects.filter(booking=booking).count() == 1
    assert pending.payment_status == 'paid'
    assert pending.amount == Decimal('200.00')
    assert pending.platform_fee == Decimal('20.00')


# ---- Transitions ----

def test_full_lifecycle_sets_timestamps(tasker, booking):
    for target, stamp in [('accepted', 'accepted_at'), ('confirmed', 'confirmed_at'),
                          ('in_progress', 'started_at'), ('completed', 'completed_at')]:
        booking = bookings.update_booking_status(tasker, booking.pk, target)
        assert booking.status == target
        assert getattr(booking, stamp) is not None


@pytest.mark.parametrize("current, target", [
    ('pending', 'confirmed'),
    ('pending', 'completed'),
    ('accepted', 'pending'),
    ('confirmed', 'accepted'),
    ('in_progress', 'cancelled'),
    ('completed', 'cancelled'),
    ('completed', 'in_progress'),
    ('cancelled', 'pending'),
    ('cancelled', 'accepted'),
])
def test_invalid_transitions_are_refused(tasker, booking_factory, current, target):
    booking = booking_factory(status=current)

    with pytest.raises(InvalidState) as exc:
        bookings.update_booking_status(tasker, booking.pk, target)

    assert exc.value.message == "Invalid status transition"
    booking.refresh_from_db()
    assert booking.status == current


def test_tasker_can_cancel_before_start(tasker, booking_factory):
    booking = booking_factory(status='confirmed')

    booking = bookings.update_booking_status(tasker, booking.pk, 'cancelled')

    assert booking.status == 'cancelled'
    assert booking.cancelled_by_id == tasker.pk
    assert booking.cancelled_at is not None


def test_only_the_tasker_changes_status(customer, other_tasker, booking):
    with pytest.raises(Unauthorized):
        bookings.update_booking_status(customer, booking.pk, 'accepted')
    with pytest.raises(Unauthorized):
        bookings.update_booking_status(other_tasker, booking.pk, 'accepted')


def test_unknown_booking(tasker):
    with pytest.raises(NotFound) as exc:
        bookings.update_booking_status(tasker, 999999, 'accepted')
    assert exc.value.message == "Booking not found"


# ---- Annulation client ----

def test_customer_cancellation(customer, tasker, booking):
    booking = bookings.cancel_customer_booking(customer, booking.pk)

    assert booking.status == 'cancelled'
    assert booking.cancellation_reason == "Cancelled by customer"
    assert booking.cancelled_by_id == customer.pk
    assert Notification.objects.filter(user=tasker, type='booking_cancelled').exists()


def test_cancelling_in_progress_booking_fails(customer, booking_factory):
    booking = booking_factory(status='in_progress')

    with pytest.raises(InvalidState) as exc:
        bookings.cancel_customer_booking(customer, booking.pk, "Plus besoin")

    assert exc.value.message == "Cannot cancel booking in current status"
    booking.refresh_from_db()
    assert booking.status == 'in_progress'
    assert booking.cancellation_reason is None


# ---- Confirmation de fin ----

def test_confirm_completion_twice(customer, tasker, booking):
    for target in ('accepted', 'confirmed', 'in_progress', 'completed'):
        bookings.update_booking_status(tasker, booking.pk, target)

    bookings.confirm_booking_completion(customer, booking.pk)
    with pytest.raises(InvalidState) as exc:
        bookings.confirm_booking_completion(customer, booking.pk)

    assert exc.value.message == "Booking completion already confirmed"
    assert Transaction.objects.filter(booking=booking, payment_status='paid').count() == 1
    tasker_stats = UserStats.objects.get(user=tasker)
    assert tasker_stats.completed_jobs == 1
    assert tasker_stats.total_earnings == Decimal('200.00')
    assert UserStats.objects.get(user=customer).total_spent == Decimal('200.00')


def test_confirm_creates_missing_payment(customer, booking_factory):
    booking = booking_factory(status='completed')

    bookings.confirm_booking_completion(customer, booking.pk)

    payment = Transaction.objects.get(booking=booking)
    assert payment.payment_status == 'paid'
    assert payment.platform_fee == Decimal('20.00')


def test_confirm_requires_completed_status(customer, booking_factory):
    booking = booking_factory(status='in_progress')
    with pytest.raises(InvalidState) as exc:
        bookings.confirm_booking_completion(customer, booking.pk)
    assert exc.value.code == 'not_completed'


# ---- Création ----

def test_create_booking_defaults_to_customer_address(customer, tasker, service, address):
    booking, warnings = bookings.create_service_booking(customer, {
        'tasker_service': service.pk, 'agreed_price': Decimal('120.00'),
    })

    assert booking.status == 'pending'
    assert booking.address_id == address.pk
    assert booking.currency == 'MAD'
    assert warnings == ["Agreed price is lower than the service's base price"]
    assert Notification.objects.filter(user=tasker, type='booking_created').exists()


def test_cannot_book_own_service(tasker, service):
    with pytest.raises(ValidationFailed):
        bookings.create_service_booking(tasker, {'tasker_service': service.pk, 'agreed_price': Decimal('150')})


def test_duplicate_active_booking_refused(customer, service, booking):
    with pytest.raises(ValidationFailed) as exc:
        bookings.create_service_booking(customer, {'tasker_service': service.pk, 'agreed_price': Decimal('150')})
    assert "already have a pending booking" in exc.value.message


def test_scheduled_booking_in_the_past_refused(customer, service, address):
    yesterday = timezone.localdate() - timedelta(days=1)
    with pytest.raises(ValidationFailed) as exc:
        bookings.create_service_booking(customer, {
            'tasker_service': service.pk, 'agreed_price': Decimal('150'), 'booking_type': 'scheduled',
            'scheduled_date': yesterday, 'scheduled_time_start': '09:00', 'scheduled_time_end': '11:00',
        })
    assert exc.value.message == "Scheduled date cannot be in the past"


def test_hourly_service_needs_minimum_duration(customer, service, address):
    service.pricing_type = 'hourly'
    service.minimum_duration = 3
    service.save()

    with pytest.raises(ValidationFailed) as exc:
        bookings.create_service_booking(customer, {
            'tasker_service': service.pk, 'agreed_price': Decimal('150'), 'estimated_duration': 2,
        })
    assert "Minimum duration is 3 hours" in exc.value.message


def test_create_without_address_fails(customer, service):
    with pytest.raises(ValidationFailed) as exc:
        bookings.create_service_booking(customer, {'tasker_service': service.pk, 'agreed_price': Decimal('150')})
    assert exc.value.message.startswith("No address found")


# ---- Listes ----

def test_tasker_list_has_more_and_total(tasker, customer, category, booking_factory):
    for _ in range(3):
        booking_factory()

    page = bookings.get_tasker_bookings(tasker, limit=2, include_total=True)

    assert len(page["bookings"]) == 2
    assert page["has_more"] is True
    assert page["total"] == 3

    last = bookings.get_tasker_bookings(tasker, limit=2, offset=2)
    assert len(last["bookings"]) == 1
    assert last["has_more"] is False
    assert last["total"] is None


def test_list_cache_revalidated_on_commit(tasker, customer, booking, django_capture_on_commit_callbacks):
    assert bookings.get_customer_bookings(customer, status='accepted')["bookings"] == []

    with django_capture_on_commit_callbacks() as callbacks:
        bookings.update_booking_status(tasker, booking.pk, 'accepted')

    # pas encore validé : la page en cache est intacte
    assert bookings.get_customer_bookings(customer, status='accepted')["bookings"] == []

    for callback in callbacks:
        callback()
    rows = bookings.get_customer_bookings(customer, status='accepted')["bookings"]
    assert [b.pk for b in rows] == [booking.pk]


def test_get_booking_by_id_participants_only(customer, other_tasker, booking):
    assert bookings.get_booking_by_id(customer, booking.pk).pk == booking.pk
    with pytest.raises(Unauthorized):
        bookings.get_booking_by_id(other_tasker, booking.pk)


# ---- API ----

def test_api_accept_booking(tasker_client, booking):
    resp = tasker_client.post(f"/api/bookings/{booking.pk}/status/", {"status": "accepted"}, format="json")

    assert resp.status_code == 200
    assert resp.data["success"] is True
    assert resp.data["booking"]["status"] == "accepted"


def test_api_insufficient_wallet_uses_accept_language(tasker_client, tasker, booking):
    User.objects.filter(pk=tasker.pk).update(wallet_balance=Decimal('2.00'))

    resp = tasker_client.post(f"/api/bookings/{booking.pk}/status/", {"status": "accepted"}, format="json",
                              HTTP_ACCEPT_LANGUAGE="en-US,en;q=0.9")

    assert resp.status_code == 409
    assert resp.data["success"] is False
    assert resp.data["error"].startswith("Your wallet balance is below 10")
    assert ServiceBooking.objects.get(pk=booking.pk).status == 'pending'


def test_api_create_booking(customer_client, service, address):
    resp = customer_client.post("/api/bookings/", {
        "tasker_service": service.pk, "agreed_price": "180.00", "customer_requirements": "Sous l'évier",
    }, format="json")

    assert resp.status_code == 201
    assert resp.data["booking"]["service"]["title"] == "Réparation fuite"
    assert resp.data["warnings"] == []


def test_api_create_booking_rejects_reversed_times(customer_client, service, address, tomorrow):
    resp = customer_client.post("/api/bookings/", {
        "tasker_service": service.pk, "agreed_price": "180.00", "booking_type": "scheduled",
        "scheduled_date": tomorrow.isoformat(), "scheduled_time_start": "12:00", "scheduled_time_end": "10:00",
    }, format="json")

    assert resp.status_code == 400
    assert resp.data["code"] == "validation_failed"
    assert resp.data["error"] == "End time must be after start time"


def test_api_customer_list_and_cancel(customer_client, booking):
    listing = customer_client.get("/api/bookings/customer/?include_total=1")
    assert listing.status_code == 200
    assert listing.data["total"] == 1
    assert listing.data["bookings"][0]["id"] == booking.pk

    resp = customer_client.post(f"/api/bookings/{booking.pk}/cancel/", {"reason": "Imprévu"}, format="json")
    assert resp.status_code == 200
    assert resp.data["booking"]["cancellation_reason"] == "Imprévu"


def test_api_requires_authentication(api_client, booking):
    resp = api_client.post(f"/api/bookings/{booking.pk}/status/", {"status": "accepted"}, format="json")
    assert resp.status_code == 401
    assert resp.data == {"success": False, "error": "Authentication required", "code": "authentication_required"}


def test_api_rejects_bad_token(api_client):
    resp = api_client.get("/api/bookings/customer/", HTTP_AUTHORIZATION="Bearer pas-un-jeton")

    assert resp.status_code == 401
    assert resp.data["success"] is False
    assert resp.data["error"] == "Authentication required"


def test_api_bad_limit_param(customer_client):
    resp = customer_client.get("/api/bookings/customer/?limit=abc")
    assert resp.status_code == 400
    assert resp.data["error"] == "Invalid limit parameter"
