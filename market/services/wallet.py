# services/wallet.py
"""Demandes de remboursement du portefeuille tasker."""
import logging
import secrets
import string
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from market.models import User, WalletRefundRequest, WalletTransaction
from market.services.errors import InvalidState, NotFound, Unauthorized, ValidationFailed, require_auth
from market.services.notifications import notify, notify_admins

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def generate_reference_code() -> str:
    stamp = timezone.now().strftime('%Y%m%d')
    suffix = ''.join(secrets.choice(REFERENCE_ALPHABET) for _ in range(6))
    return f"REF-{stamp}-{suffix}"


def unique_reference_code(attempts=5) -> str:
    for _ in range(attempts):
        code = generate_reference_code()
        if not WalletRefundRequest.objects.filter(reference_code=code).exists():
            return code
    raise InvalidState("Could not generate a unique reference code")


def _require_admin(user):
    require_auth(user)
    if not user.is_admin:
        raise Unauthorized()


def _get_request(request_id, for_update=False):
    qs = WalletRefundRequest.objects.select_related('tasker')
    if for_update:
        qs = qs.select_for_update(of=('self',))
    try:
        return qs.get(pk=request_id)
    except (WalletRefundRequest.DoesNotExist, ValueError):
        raise NotFound("Refund request not found")


def create_wallet_refund_request(user, amount) -> WalletRefundRequest:
    require_auth(user)
    if not user.is_tasker:
        raise Unauthorized("Only taskers can create refund requests")

    amount = Decimal(str(amount or 0))
    minimum = Decimal(str(settings.MARKETPLACE['REFUND_MIN_AMOUNT']))
    maximum = Decimal(str(settings.MARKETPLACE['REFUND_MAX_AMOUNT']))
    if amount <= 0:
        raise ValidationFailed("Amount must be greater than zero")
    if amount < minimum:
        raise ValidationFailed(f"Minimum refund amount is {minimum}")
    if amount > maximum:
        raise ValidationFailed(f"Maximum refund amount is {maximum}")

    with transaction.atomic():
        tasker = User.objects.select_for_update().get(pk=user.pk)
        if tasker.wallet_balance < amount:
            raise ValidationFailed("Insufficient wallet balance")
        if WalletRefundRequest.objects.filter(tasker=tasker, status__in=WalletRefundRequest.OPEN_STATUSES).exists():
            raise InvalidState("You already have a refund request in progress")
        refund = WalletRefundRequest.objects.create(
            tasker=tasker, amount=amount, reference_code=unique_reference_code(),
        )

    notify_admins('wallet_refund_request_created', 'refund_created',
                  related_user=user, reference=refund.reference_code, amount=amount,
                  currency=settings.MARKETPLACE['DEFAULT_CURRENCY'])
    logger.info("Demande de remboursement %s créée par %s", refund.reference_code, user.pk)
    return refund


def confirm_refund_payment(user, request_id, receipt_url) -> WalletRefundRequest:
    require_auth(user)
    if not receipt_url:
        raise ValidationFailed("Receipt is required")
    with transaction.atomic():
        refund = _get_request(request_id, for_update=True)
        if refund.tasker_id != user.pk:
            raise Unauthorized()
        if refund.status != 'pending':
            raise InvalidState("Refund request cannot be confirmed in its current status")
        refund.receipt_url = receipt_url
        refund.status = 'payment_confirmed'
        refund.payment_confirmed_at = timezone.now()
        refund.save(update_fields=['receipt_url', 'status', 'payment_confirmed_at', 'updated_at'])
    return refund


def mark_refund_verifying(user, request_id, notes=None) -> WalletRefundRequest:
    _require_admin(user)
    with transaction.atomic():
        refund = _get_request(request_id, for_update=True)
        if refund.status not in ('pending', 'payment_confirmed'):
            raise InvalidState("Refund request cannot be verified in its current status")
        refund.status = 'admin_verifying'
        refund.processed_by = user
        update_fields = ['status', 'processed_by', 'updated_at']
        if notes:
            refund.admin_notes = notes
            update_fields.append('admin_notes')
        refund.save(update_fields=update_fields)
    return refund


def approve_refund_request(user, request_id, notes=None) -> WalletRefundRequest:
    _require_admin(user)
    with transaction.atomic():
        refund = _get_request(request_id, for_update=True)
        if refund.status not in ('payment_confirmed', 'admin_verifying'):
            raise InvalidState("Refund request cannot be approved in its current status")
        tasker = User.objects.select_for_update().get(pk=refund.tasker_id)
        before = tasker.wallet_balance
        after = before - refund.amount
        if after < 0:
            raise InvalidState("Insufficient wallet balance for this refund")
        tasker.wallet_balance = after
        tasker.save(update_fields=['wallet_balance'])
        WalletTransaction.objects.create(
            user=tasker,
            transaction_type='refund',
            amount=-refund.amount,
            balance_before=before,
            balance_after=after,
            description=f"Wallet refund approved. Reference: {refund.reference_code}",
        )
        refund.status = 'approved'
        refund.processed_by = user
        refund.processed_at = timezone.now()
        if notes:
            refund.admin_notes = notes
        refund.save(update_fields=['status', 'processed_by', 'processed_at', 'admin_notes', 'updated_at'])

    notify(refund.tasker, 'wallet_refund_approved', 'refund_approved', reference=refund.reference_code)
    logger.info("Remboursement %s approuvé par %s", refund.reference_code, user.pk)
    return refund


def reject_refund_request(user, request_id, notes) -> WalletRefundRequest:
    _require_admin(user)
    notes = (notes or '').strip()
    if not notes:
        raise ValidationFailed("Admin notes are required to reject a request")
    with transaction.atomic():
        refund = _get_request(request_id, for_update=True)
        if refund.status not in WalletRefundRequest.OPEN_STATUSES:
            raise InvalidState("Refund request cannot be rejected in its current status")
        refund.status = 'rejected'
        refund.admin_notes = notes
        refund.processed_by = user
        refund.processed_at = timezone.now()
        refund.save(update_fields=['status', 'admin_notes', 'processed_by', 'processed_at', 'updated_at'])

    notify(refund.tasker, 'wallet_refund_rejected', 'refund_rejected', reference=refund.reference_code, notes=notes)
    return refund


def get_tasker_refund_requests(user):
    require_auth(user)
    return WalletRefundRequest.objects.filter(tasker=user).order_by('-created_at', '-id')


def get_all_refund_requests(user, status=None):
    _require_admin(user)
    qs = WalletRefundRequest.objects.select_related('tasker', 'processed_by')
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('-created_at', '-id')
