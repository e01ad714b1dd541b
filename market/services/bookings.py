# services/bookings.py
"""
Cycle de vie des réservations de services.

    pending -> accepted -> confirmed -> in_progress -> completed
    pending | accepted | confirmed -> cancelled

Le passage pending -> accepted déclenche le règlement : transaction « paid »
côté client et prélèvement des frais plateforme sur le portefeuille du
tasker. Tout se fait dans un bloc atomique avec verrous de ligne ; les
contrôles d'existence rendent l'opération rejouable sans doublon.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from market.i18n import translate
from market.models import (
    Address, ServiceBooking, TaskerService, Transaction, User, UserStats, WalletTransaction,
)
from market.services import cache as booking_cache
from market.services.dates import is_past_date
from market.services.errors import (
    InvalidState, NotFound, Unauthorized, ValidationFailed, require_auth,
)
from market.services.fees import compute_platform_fee, min_tasker_wallet_balance
from market.services.notifications import notify

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    'pending': {'accepted', 'cancelled'},
    'accepted': {'confirmed', 'cancelled'},
    'confirmed': {'in_progress', 'cancelled'},
    'in_progress': {'completed'},
    'completed': set(),
    'cancelled': set(),
}
CANCELLABLE_STATUSES = ('pending', 'accepted', 'confirmed')
ACTIVE_STATUSES = ('pending', 'accepted', 'confirmed')
WALLET_GUARDED_STATUSES = ('accepted', 'in_progress')

STATUS_TIMESTAMPS = {
    'accepted': 'accepted_at',
    'confirmed': 'confirmed_at',
    'in_progress': 'started_at',
    'completed': 'completed_at',
    'cancelled': 'cancelled_at',
}

INSUFFICIENT_FEE_BALANCE = "Tasker wallet balance is insufficient to cover platform fee"


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def _get_booking(booking_id, for_update=False):
    qs = ServiceBooking.objects.select_related('customer', 'tasker', 'tasker_service')
    if for_update:
        qs = qs.select_for_update(of=('self',))
    try:
        return qs.get(pk=booking_id)
    except (ServiceBooking.DoesNotExist, ValueError):
        raise NotFound("Booking not found")


def _insufficient_balance_message(locale):
    return translate(
        'wallet.insufficient_balance', locale,
        minimum=min_tasker_wallet_balance(), currency=settings.MARKETPLACE['DEFAULT_CURRENCY'],
    )


# ---- Règlement à l'acceptation ----

def settle_acceptance(booking: ServiceBooking):
    """
    Doit être appelé dans transaction.atomic(). Retourne (transaction, frais).
    """
    fee = compute_platform_fee(booking.agreed_price)
    now = timezone.now()

    tasker = User.objects.select_for_update().get(pk=booking.tasker_id)
    if tasker.wallet_balance < fee:
        raise InvalidState(INSUFFICIENT_FEE_BALANCE, code='insufficient_fee_balance')

    payment = (Transaction.objects.select_for_update()
               .filter(booking=booking, transaction_type__in=Transaction.BOOKING_PAYMENT_TYPES)
               .order_by('created_at', 'id')
               .first())
    fields = dict(
        amount=booking.agreed_price,
        platform_fee=fee,
        net_amount=booking.agreed_price - fee,
        payment_status='paid',
        processed_at=now,
    )
    if payment:
        for name, value in fields.items():
            setattr(payment, name, value)
        payment.save(update_fields=[*fields, 'updated_at'])
    else:
        payment = Transaction.objects.create(
            booking=booking,
            payer_id=booking.customer_id,
            payee_id=booking.tasker_id,
            transaction_type='booking_payment',
            currency=booking.currency,
            payment_method=booking.payment_method,
            **fields,
        )

    already_charged = WalletTransaction.objects.filter(
        user=tasker, transaction_type='fee_deduction', related_booking=booking,
    ).exists()
    if not already_charged and fee > 0:
        before = tasker.wallet_balance
        tasker.wallet_balance = before - fee
        tasker.save(update_fields=['wallet_balance'])
        WalletTransaction.objects.create(
            user=tasker,
            transaction_type='fee_deduction',
            amount=-fee,
            balance_before=before,
            balance_after=tasker.wallet_balance,
            related_booking=booking,
            description=f"Platform fee for booking #{booking.pk}",
        )

    notify(
        tasker, 'payment_confirmed', 'payment_confirmed',
        related_booking=booking, related_user=booking.customer,
        amount=booking.agreed_price, fee=fee, currency=booking.currency,
        service=booking.tasker_service.title,
    )
    return payment, fee


# ---- Actions ----

def update_booking_status(user, booking_id, new_status, locale=None) -> ServiceBooking:
    require_auth(user)
    booking = _get_booking(booking_id)
    if booking.tasker_id != user.pk:
        raise Unauthorized()

    if new_status in WALLET_GUARDED_STATUSES:
        balance = User.objects.values_list('wallet_balance', flat=True).get(pk=user.pk)
        if balance < min_tasker_wallet_balance():
            raise InvalidState(_insufficient_balance_message(locale), code='insufficient_wallet_balance')

    if not can_transition(booking.status, new_status):
        raise InvalidState("Invalid status transition", code='invalid_transition')

    with transaction.atomic():
        booking = _get_booking(booking_id, for_update=True)
        # relu sous verrou : une autre requête a pu faire avancer le statut
        if not can_transition(booking.status, new_status):
            raise InvalidState("Invalid status transition", code='invalid_transition')

        if booking.status == 'pending' and new_status == 'accepted':
            settle_acceptance(booking)

        now = timezone.now()
        booking.status = new_status
        update_fields = ['status', 'updated_at', STATUS_TIMESTAMPS[new_status]]
        setattr(booking, STATUS_TIMESTAMPS[new_status], now)
        if new_status == 'cancelled':
            booking.cancelled_by = user
            booking.cancellation_reason = booking.cancellation_reason or "Cancelled by tasker"
            update_fields += ['cancelled_by', 'cancellation_reason']
        booking.save(update_fields=update_fields)

    logger.info("Réservation %s : statut -> %s par %s", booking.pk, new_status, user.pk)
    return booking


def cancel_customer_booking(user, booking_id, reason=None) -> ServiceBooking:
    require_auth(user)
    with transaction.atomic():
        booking = _get_booking(booking_id, for_update=True)
        if booking.customer_id != user.pk:
            raise Unauthorized()
        if booking.status not in CANCELLABLE_STATUSES:
            raise InvalidState("Cannot cancel booking in current status", code='invalid_transition')

        booking.status = 'cancelled'
        booking.cancellation_reason = (reason or '').strip() or "Cancelled by customer"
        booking.cancelled_by = user
        booking.cancelled_at = timezone.now()
        booking.save(update_fields=['status', 'cancellation_reason', 'cancelled_by', 'cancelled_at', 'updated_at'])

    notify(
        booking.tasker, 'booking_cancelled', 'booking_cancelled',
        related_booking=booking, related_user=user,
        service=booking.tasker_service.title, reason=booking.cancellation_reason,
    )
    return booking


def confirm_booking_completion(user, booking_id) -> ServiceBooking:
    require_auth(user)
    with transaction.atomic():
        booking = _get_booking(booking_id, for_update=True)
        if booking.customer_id != user.pk:
            raise Unauthorized()
        if booking.status != 'completed':
            raise InvalidState("Booking must be completed before confirmation", code='not_completed')
        if booking.customer_confirmed_at is not None:
            raise InvalidState("Booking completion already confirmed", code='already_confirmed')

        booking.customer_confirmed_at = timezone.now()
        booking.save(update_fields=['customer_confirmed_at', 'updated_at'])

        # filet de sécurité : une réservation confirmée a toujours un paiement
        if not Transaction.objects.filter(booking=booking, payment_status='paid').exists():
            fee = compute_platform_fee(booking.agreed_price)
            Transaction.objects.create(
                booking=booking,
                payer_id=booking.customer_id,
                payee_id=booking.tasker_id,
                transaction_type='booking_payment',
                amount=booking.agreed_price,
                platform_fee=fee,
                net_amount=booking.agreed_price - fee,
                currency=booking.currency,
                payment_status='paid',
                payment_method=booking.payment_method,
                processed_at=booking.customer_confirmed_at,
            )
            logger.warning("Réservation %s confirmée sans paiement : transaction créée", booking.pk)

        record_completion_stats(booking.tasker_id, booking.customer_id, booking.agreed_price)
    return booking


def record_completion_stats(tasker_id, customer_id, amount):
    amount = Decimal(amount or 0)
    tasker_stats, _ = UserStats.objects.select_for_update().get_or_create(user_id=tasker_id)
    tasker_stats.completed_jobs += 1
    tasker_stats.total_earnings += amount
    tasker_stats.save(update_fields=['completed_jobs', 'total_earnings', 'updated_at'])

    customer_stats, _ = UserStats.objects.select_for_update().get_or_create(user_id=customer_id)
    customer_stats.total_spent += amount
    customer_stats.save(update_fields=['total_spent', 'updated_at'])


# ---- Création ----

def _resolve_address(user, address_id):
    if address_id:
        try:
            return Address.objects.get(pk=address_id, user=user)
        except Address.DoesNotExist:
            raise ValidationFailed("Address not found")
    address = (Address.objects.filter(user=user, is_default=True).first()
               or Address.objects.filter(user=user).order_by('created_at').first())
    if address is None:
        raise ValidationFailed("No address found. Please add an address to your profile first.")
    return address


def create_service_booking(user, data):
    """
    data : champs validés par BookingCreateSerializer.
    Retourne (booking, warnings).
    """
    require_auth(user)
    errors, warnings = [], []

    try:
        service = TaskerService.objects.select_related('tasker').get(pk=data.get('tasker_service'))
    except (TaskerService.DoesNotExist, ValueError, TypeError):
        raise NotFound("Service not found or unavailable")
    if service.tasker_id == user.pk:
        raise ValidationFailed("You cannot book your own service")

    booking_type = data.get('booking_type') or 'instant'
    price = data.get('agreed_price')
    duration = data.get('estimated_duration')

    if service.service_status != 'active':
        errors.append("Service is not currently available")
    if price is None or price <= 0:
        errors.append("Valid price is required")
    elif price < service.price:
        warnings.append("Agreed price is lower than the service's base price")

    if booking_type == 'scheduled':
        if not data.get('scheduled_date'):
            errors.append("Scheduled date is required for scheduled bookings")
        if not data.get('scheduled_time_start'):
            errors.append("Start time is required for scheduled bookings")
        if not data.get('scheduled_time_end'):
            errors.append("End time is required for scheduled bookings")

    if service.pricing_type == 'hourly':
        if not duration or duration <= 0:
            errors.append("Duration is required for hourly services")
        elif service.minimum_duration and duration < service.minimum_duration:
            errors.append(f"Minimum duration is {service.minimum_duration} hours")

    if ServiceBooking.objects.filter(customer=user, tasker_service=service, status__in=ACTIVE_STATUSES).exists():
        errors.append("You already have a pending booking for this service")

    if errors:
        raise ValidationFailed(". ".join(errors) + ".")

    address = _resolve_address(user, data.get('address'))

    if booking_type == 'scheduled' and is_past_date(data['scheduled_date']):
        raise ValidationFailed("Scheduled date cannot be in the past")

    booking = ServiceBooking.objects.create(
        customer=user,
        tasker=service.tasker,
        tasker_service=service,
        booking_type=booking_type,
        scheduled_date=data.get('scheduled_date'),
        scheduled_time_start=data.get('scheduled_time_start'),
        scheduled_time_end=data.get('scheduled_time_end'),
        estimated_duration=duration,
        address=address,
        service_address=data.get('service_address') or None,
        agreed_price=price,
        customer_requirements=data.get('customer_requirements') or None,
        payment_method=data.get('payment_method') or 'pending',
    )
    notify(service.tasker, 'booking_created', 'booking_created',
           related_booking=booking, related_user=user, service=service.title)
    logger.info("Réservation %s créée par %s pour le service %s", booking.pk, user.pk, service.pk)
    return booking, warnings


# ---- Lecture ----

def _paginate(qs, limit, offset, include_total):
    limit = max(1, min(int(limit or 20), 100))
    offset = max(0, int(offset or 0))
    # un élément de plus pour savoir s'il reste une page
    rows = list(qs[offset:offset + limit + 1])
    return {
        "bookings": rows[:limit],
        "has_more": len(rows) > limit,
        "total": qs.count() if include_total else None,
    }


def _booking_list(qs, key, limit, offset, status, include_total):
    if status:
        qs = qs.filter(status=status)
    variant = (limit, offset, status, include_total)
    return booking_cache.cached_page(key, variant, lambda: _paginate(qs, limit, offset, include_total))


def _list_qs():
    return (ServiceBooking.objects
            .select_related('customer', 'tasker', 'tasker_service', 'tasker_service__category', 'address')
            .order_by('-created_at', '-id'))


def get_tasker_bookings(user, limit=20, offset=0, status=None, include_total=False):
    require_auth(user)
    return _booking_list(_list_qs().filter(tasker=user), booking_cache.tasker_bookings_key(user.pk),
                         limit, offset, status, include_total)


def get_customer_bookings(user, limit=20, offset=0, status=None, include_total=False):
    require_auth(user)
    return _booking_list(_list_qs().filter(customer=user), booking_cache.customer_bookings_key(user.pk),
                         limit, offset, status, include_total)


def get_booking_by_id(user, booking_id) -> ServiceBooking:
    require_auth(user)
    booking = _get_booking(booking_id)
    if user.pk not in (booking.customer_id, booking.tasker_id):
        raise Unauthorized()
    return booking
