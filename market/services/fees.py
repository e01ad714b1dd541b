# services/fees.py
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

CENTS = Decimal('0.01')


def platform_fee_rate() -> Decimal:
    return Decimal(str(settings.MARKETPLACE['PLATFORM_FEE_RATE']))


def min_tasker_wallet_balance() -> Decimal:
    return Decimal(str(settings.MARKETPLACE['MIN_TASKER_WALLET_BALANCE']))


def compute_platform_fee(amount) -> Decimal:
    """Frais plateforme sur le prix convenu (10% par défaut), arrondis au centime."""
    amount = Decimal(str(amount or 0))
    return (amount * platform_fee_rate()).quantize(CENTS, rounding=ROUND_HALF_UP)


def net_amount(amount) -> Decimal:
    amount = Decimal(str(amount or 0)).quantize(CENTS)
    return amount - compute_platform_fee(amount)
