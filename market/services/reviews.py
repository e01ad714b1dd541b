# services/reviews.py
from decimal import Decimal, ROUND_HALF_UP

from django.db import IntegrityError, transaction
from django.utils import timezone

from market.models import Job, Review, ServiceBooking, User
from market.services.errors import InvalidState, NotFound, Unauthorized, ValidationFailed, require_auth
from market.services.notifications import notify

REPLY_MAX_LENGTH = 1000


def validate_reply(text) -> str:
    text = (text or '').strip()
    if not text:
        raise ValidationFailed("Reply cannot be empty")
    if len(text) > REPLY_MAX_LENGTH:
        raise ValidationFailed(f"Reply cannot exceed {REPLY_MAX_LENGTH} characters")
    return text


def _reviewable_target(user, booking_id=None, job_id=None):
    if bool(booking_id) == bool(job_id):
        raise ValidationFailed("A review must target exactly one booking or job")

    if booking_id:
        try:
            booking = ServiceBooking.objects.get(pk=booking_id)
        except (ServiceBooking.DoesNotExist, ValueError):
            raise NotFound("Booking not found")
        if booking.customer_id != user.pk:
            raise Unauthorized()
        if booking.customer_confirmed_at is None:
            raise InvalidState("You can only review a booking after confirming its completion")
        return {"booking": booking}, booking.tasker_id

    try:
        job = Job.objects.get(pk=job_id)
    except (Job.DoesNotExist, ValueError):
        raise NotFound("Job not found")
    if job.customer_id != user.pk:
        raise Unauthorized()
    if job.customer_confirmed_at is None or job.assigned_tasker_id is None:
        raise InvalidState("You can only review a job after confirming its completion")
    return {"job": job}, job.assigned_tasker_id


def create_review(user, data) -> Review:
    require_auth(user)
    target, reviewee_id = _reviewable_target(user, data.get('booking'), data.get('job'))
    if Review.objects.filter(reviewer=user, **target).exists():
        raise InvalidState("You have already reviewed this item")
    try:
        with transaction.atomic():
            review = Review.objects.create(
                reviewer=user,
                reviewee_id=reviewee_id,
                overall_rating=data['overall_rating'],
                quality_rating=data.get('quality_rating'),
                communication_rating=data.get('communication_rating'),
                timeliness_rating=data.get('timeliness_rating'),
                comment=(data.get('comment') or '').strip() or None,
                **target,
            )
    except IntegrityError:
        raise InvalidState("You have already reviewed this item")

    notify(review.reviewee, 'review_received', 'review_received',
           related_user=user, rating=review.overall_rating, **{f"related_{k}": v for k, v in target.items()})
    return review


def reply_to_review(user, review_id, text) -> Review:
    require_auth(user)
    text = validate_reply(text)
    with transaction.atomic():
        try:
            review = Review.objects.select_for_update().get(pk=review_id)
        except (Review.DoesNotExist, ValueError):
            raise NotFound("Review not found")
        if review.reviewee_id != user.pk:
            raise Unauthorized("Unauthorized to reply to this review")
        if review.reply_comment:
            raise InvalidState("Already replied to this review")
        review.reply_comment = text
        review.replied_at = timezone.now()
        review.save(update_fields=['reply_comment', 'replied_at'])
    return review


def get_tasker_reviews(tasker_id):
    return (Review.objects.filter(reviewee_id=tasker_id)
            .select_related('reviewer', 'booking__tasker_service', 'job')
            .order_by('-created_at', '-id'))


def review_stats(reviews) -> dict:
    reviews = list(reviews)
    total = len(reviews)
    if not total:
        return {"averageRating": 0, "totalReviews": 0, "responseRate": 0, "fiveStarCount": 0}
    average = (Decimal(sum(r.overall_rating for r in reviews)) / total).quantize(
        Decimal('0.1'), rounding=ROUND_HALF_UP)
    replied = sum(1 for r in reviews if r.reply_comment)
    return {
        "averageRating": float(average),
        "totalReviews": total,
        "responseRate": int((Decimal(replied * 100) / total).quantize(Decimal('1'), rounding=ROUND_HALF_UP)),
        "fiveStarCount": sum(1 for r in reviews if r.overall_rating == 5),
    }


def get_tasker_reviews_with_stats(tasker_id):
    if not User.objects.filter(pk=tasker_id).exists():
        raise NotFound("Tasker not found")
    reviews = list(get_tasker_reviews(tasker_id))
    return reviews, review_stats(reviews)
