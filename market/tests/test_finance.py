from datetime import date, datetime
from decimal import Decimal

import pytest
from django.utils import timezone

from market.models import Transaction, WalletTransaction
from market.services import finance
from market.services.errors import ValidationFailed

pytestmark = pytest.mark.django_db

TODAY = date(2026, 3, 18)  # un mercredi


def _paid(customer, tasker, day, amount, status='paid'):
    amount = Decimal(amount)
    return Transaction.objects.create(
        payer=customer, payee=tasker, transaction_type='service_payment', amount=amount,
        platform_fee=amount / 10, net_amount=amount - amount / 10, payment_status=status,
        processed_at=timezone.make_aware(datetime(day.year, day.month, day.day, 12, 0)),
    )


@pytest.fixture
def history(customer, tasker):
    return [
        _paid(customer, tasker, date(2026, 3, 18), '100.00'),
        _paid(customer, tasker, date(2026, 3, 17), '200.00'),
        _paid(customer, tasker, date(2026, 3, 10), '300.00'),
        _paid(customer, tasker, date(2026, 3, 2), '400.00'),
        _paid(customer, tasker, date(2026, 2, 20), '500.00'),
        _paid(customer, tasker, date(2026, 3, 18), '999.00', status='pending'),
    ]


def test_finance_overview_buckets(tasker, history):
    data = finance.get_tasker_finance_data(tasker, today=TODAY)

    assert data["stats"] == {
        "today": Decimal('100.00'),
        "yesterday": Decimal('200.00'),
        "this_week": Decimal('300.00'),
        "last_week": Decimal('300.00'),
        "this_month": Decimal('1000.00'),
        "last_month": Decimal('500.00'),
        "total": Decimal('1500.00'),
        "platform_fees": Decimal('150.00'),
    }
    assert data["wallet_balance"] == Decimal('50.00')
    assert data["user_stats"].user_id == tasker.pk
    assert len(data["transactions"]) == 6


def test_finance_overview_without_history(other_tasker):
    data = finance.get_tasker_finance_data(other_tasker, today=TODAY)
    assert all(value == Decimal('0.00') for value in data["stats"].values())
    assert data["transactions"] == []


def test_earnings_by_month(tasker, history):
    rows = finance.get_tasker_earnings_by_period(tasker, 'month')

    assert rows == [
        {"date": "2026-02", "earnings": Decimal('500.00')},
        {"date": "2026-03", "earnings": Decimal('1000.00')},
    ]


def test_earnings_by_week_keeps_latest(tasker, history):
    rows = finance.get_tasker_earnings_by_period(tasker, 'week', limit=2)

    assert rows == [
        {"date": "2026-W11", "earnings": Decimal('300.00')},
        {"date": "2026-W12", "earnings": Decimal('300.00')},
    ]


def test_earnings_invalid_period(tasker):
    with pytest.raises(ValidationFailed) as exc:
        finance.get_tasker_earnings_by_period(tasker, 'year')
    assert exc.value.message == "Period must be one of: day, week, month"


def test_transactions_filter_by_status(tasker, history):
    assert finance.get_tasker_transactions(tasker, 'pending').count() == 1
    assert finance.get_tasker_transactions(tasker).first().pk == history[-1].pk


# ---- API ----

def test_api_finance_overview(tasker_client, history):
    resp = tasker_client.get("/api/finance/")

    assert resp.status_code == 200
    assert resp.data["stats"]["total"] == Decimal('1500.00')
    assert resp.data["user_stats"] is not None


def test_api_earnings(tasker_client, history):
    resp = tasker_client.get("/api/finance/earnings/?period=day&limit=1")
    assert resp.data["earnings"] == [{"date": "2026-03-18", "earnings": Decimal('100.00')}]

    bad = tasker_client.get("/api/finance/earnings/?period=decade")
    assert bad.status_code == 400


def test_api_wallet_history(tasker_client, tasker):
    WalletTransaction.objects.create(user=tasker, transaction_type='top_up', amount=Decimal('40.00'),
                                     balance_before=Decimal('10.00'), balance_after=Decimal('50.00'))
    WalletTransaction.objects.create(user=tasker, transaction_type='fee_deduction', amount=Decimal('-5.00'),
                                     balance_before=Decimal('50.00'), balance_after=Decimal('45.00'))

    everything = tasker_client.get("/api/wallet/history/")
    assert everything.data["count"] == 2

    fees = tasker_client.get("/api/wallet/history/?type=fee_deduction")
    assert fees.data["count"] == 1
    assert fees.data["results"][0]["amount"] == "-5.00"
