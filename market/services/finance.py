# services/finance.py
from collections import OrderedDict
from decimal import Decimal

from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from market.models import Transaction, User, UserStats, WalletTransaction
from market.services.dates import as_datetime_range, earnings_periods
from market.services.errors import ValidationFailed, require_auth

PERIODS = ('day', 'week', 'month')
ZERO = Decimal('0.00')


def _paid_received(user):
    return (Transaction.objects.filter(payee=user, payment_status='paid')
            .annotate(paid_at=Coalesce('processed_at', 'created_at')))


def _sum(qs, field='amount'):
    return qs.aggregate(s=Sum(field))['s'] or ZERO


def get_tasker_finance_data(user, today=None) -> dict:
    require_auth(user)
    paid = _paid_received(user)
    stats = {}
    for name, (start, end) in earnings_periods(today).items():
        start_dt, end_dt = as_datetime_range(start, end)
        stats[name] = _sum(paid.filter(paid_at__gte=start_dt, paid_at__lt=end_dt))
    stats["total"] = _sum(paid)
    stats["platform_fees"] = _sum(paid, 'platform_fee')

    wallet_balance = User.objects.values_list('wallet_balance', flat=True).get(pk=user.pk)
    user_stats = UserStats.objects.filter(user=user).first()
    return {
        "stats": stats,
        "wallet_balance": wallet_balance,
        "user_stats": user_stats,
        "transactions": list(get_tasker_transactions(user)[:10]),
    }


def get_tasker_transactions(user, status=None):
    require_auth(user)
    qs = (Transaction.objects.filter(payee=user)
          .select_related('payer', 'booking__tasker_service', 'job'))
    if status:
        qs = qs.filter(payment_status=status)
    return qs.order_by('-created_at', '-id')


def _bucket_key(moment, period):
    local = timezone.localtime(moment)
    if period == 'day':
        return local.date().isoformat()
    if period == 'week':
        year, week, _ = local.isocalendar()
        return f"{year}-W{week:02d}"
    return f"{local.year}-{local.month:02d}"


def get_tasker_earnings_by_period(user, period='month', limit=30):
    require_auth(user)
    if period not in PERIODS:
        raise ValidationFailed("Period must be one of: day, week, month")
    limit = max(1, min(int(limit or 30), 365))

    buckets = OrderedDict()
    for paid_at, amount in _paid_received(user).order_by('paid_at').values_list('paid_at', 'amount'):
        key = _bucket_key(paid_at, period)
        buckets[key] = buckets.get(key, ZERO) + amount
    rows = [{"date": key, "earnings": value} for key, value in sorted(buckets.items())]
    return rows[-limit:]


def get_wallet_history(user, transaction_type=None):
    require_auth(user)
    qs = WalletTransaction.objects.filter(user=user).select_related('related_booking', 'related_job')
    if transaction_type:
        qs = qs.filter(transaction_type=transaction_type)
    return qs.order_by('-created_at', '-id')
