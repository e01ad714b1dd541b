# services/cache.py
import logging

from django.core.cache import cache

logger = logging.getLogger(__name__)

BOOKING_LIST_TTL = 60


def tasker_bookings_key(user_id):
    return f"bookings:tasker:{user_id}"


def customer_bookings_key(user_id):
    return f"bookings:customer:{user_id}"


def cached_page(key, variant, loader):
    """
    Les pages d'une même liste sont rangées sous une seule clé, pour pouvoir
    toutes les invalider d'un coup.
    """
    pages = cache.get(key) or {}
    if variant in pages:
        return pages[variant]
    result = loader()
    pages[variant] = result
    cache.set(key, pages, BOOKING_LIST_TTL)
    return result


def revalidate_booking(booking):
    """Invalide les listes tasker et client touchées par une réservation."""
    keys = [tasker_bookings_key(booking.tasker_id), customer_bookings_key(booking.customer_id)]
    try:
        cache.delete_many(keys)
    except Exception:
        logger.warning("Invalidation du cache impossible pour %s", keys, exc_info=True)
