from decimal import Decimal

import pytest
from django.utils import timezone

from market.models import Notification, Review, UserStats
from market.services import reviews
from market.services.errors import InvalidState, Unauthorized, ValidationFailed

pytestmark = pytest.mark.django_db


@pytest.fixture
def confirmed_booking(booking_factory):
    return booking_factory(status='completed', completed_at=timezone.now(), customer_confirmed_at=timezone.now())


def test_review_updates_tasker_rating(customer, tasker, confirmed_booking):
    review = reviews.create_review(customer, {'booking': confirmed_booking.pk, 'overall_rating': 4,
                                              'comment': "  Travail propre  "})

    assert review.reviewee_id == tasker.pk
    assert review.comment == "Travail propre"
    stats = UserStats.objects.get(user=tasker)
    assert stats.tasker_rating == Decimal('4.00')
    assert stats.total_reviews == 1
    assert Notification.objects.filter(user=tasker, type='review_received').exists()


def test_rating_recomputed_on_delete(customer, tasker, booking_factory, confirmed_booking):
    second = booking_factory(status='completed', customer_confirmed_at=timezone.now())
    reviews.create_review(customer, {'booking': confirmed_booking.pk, 'overall_rating': 5})
    low = reviews.create_review(customer, {'booking': second.pk, 'overall_rating': 2})
    assert UserStats.objects.get(user=tasker).tasker_rating == Decimal('3.50')

    low.delete()

    stats = UserStats.objects.get(user=tasker)
    assert stats.tasker_rating == Decimal('5.00')
    assert stats.total_reviews == 1


def test_one_review_per_booking(customer, confirmed_booking):
    reviews.create_review(customer, {'booking': confirmed_booking.pk, 'overall_rating': 5})
    with pytest.raises(InvalidState):
        reviews.create_review(customer, {'booking': confirmed_booking.pk, 'overall_rating': 3})
    assert Review.objects.count() == 1


def test_review_requires_confirmed_completion(customer, booking_factory):
    booking = booking_factory(status='completed')
    with pytest.raises(InvalidState):
        reviews.create_review(customer, {'booking': booking.pk, 'overall_rating': 5})


def test_only_the_customer_reviews(other_tasker, confirmed_booking):
    with pytest.raises(Unauthorized):
        reviews.create_review(other_tasker, {'booking': confirmed_booking.pk, 'overall_rating': 5})


def test_review_targets_exactly_one_item(customer, confirmed_booking):
    with pytest.raises(ValidationFailed):
        reviews.create_review(customer, {'overall_rating': 5})


def test_reply_once(customer, tasker, confirmed_booking):
    review = reviews.create_review(customer, {'booking': confirmed_booking.pk, 'overall_rating': 5})

    replied = reviews.reply_to_review(tasker, review.pk, "  Merci beaucoup !  ")

    assert replied.reply_comment == "Merci beaucoup !"
    assert replied.replied_at is not None
    with pytest.raises(InvalidState) as exc:
        reviews.reply_to_review(tasker, review.pk, "Encore merci")
    assert exc.value.message == "Already replied to this review"


@pytest.mark.parametrize("text, message", [
    ("   ", "Reply cannot be empty"),
    ("x" * 1001, "Reply cannot exceed 1000 characters"),
])
def test_reply_validation(text, message):
    with pytest.raises(ValidationFailed) as exc:
        reviews.validate_reply(text)
    assert exc.value.message == message


def test_only_reviewee_replies(customer, confirmed_booking):
    review = reviews.create_review(customer, {'booking': confirmed_booking.pk, 'overall_rating': 5})
    with pytest.raises(Unauthorized) as exc:
        reviews.reply_to_review(customer, review.pk, "Moi aussi")
    assert exc.value.message == "Unauthorized to reply to this review"


def test_review_stats():
    rows = [Review(overall_rating=r, reply_comment=c) for r, c in [(5, "ok"), (5, None), (4, None), (3, "merci")]]

    stats = reviews.review_stats(rows)

    assert stats == {"averageRating": 4.3, "totalReviews": 4, "responseRate": 50, "fiveStarCount": 2}


def test_review_stats_empty():
    assert reviews.review_stats([])["averageRating"] == 0


def test_api_public_tasker_reviews(api_client, customer, tasker, confirmed_booking):
    reviews.create_review(customer, {'booking': confirmed_booking.pk, 'overall_rating': 5})

    resp = api_client.get(f"/api/taskers/{tasker.pk}/reviews/")

    assert resp.status_code == 200
    assert resp.data["stats"]["totalReviews"] == 1
    assert resp.data["reviews"][0]["reviewer"]["full_name"] == "Salma Idrissi"


def test_api_create_review_rejects_out_of_range(customer_client, confirmed_booking):
    resp = customer_client.post("/api/reviews/", {"booking": confirmed_booking.pk, "overall_rating": 6},
                                format="json")
    assert resp.status_code == 400
    assert resp.data["code"] == "validation_failed"
