# services/jobs.py
import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from market.models import Address, Job, JobApplication, ServiceCategory, Transaction, UserStats
from market.services.bookings import record_completion_stats
from market.services.errors import (
    InvalidState, NotFound, Unauthorized, ValidationFailed, require_auth,
)
from market.services.fees import compute_platform_fee
from market.services.notifications import notify

logger = logging.getLogger(__name__)

# statuts que le client peut poser directement ; les autres passent par les actions dédiées
CUSTOMER_SETTABLE_STATUSES = ('pending', 'active', 'cancelled')
EDITABLE_FIELDS = (
    'title', 'description', 'category', 'address', 'preferred_date', 'preferred_time_start',
    'preferred_time_end', 'is_flexible', 'estimated_duration', 'customer_budget',
    'max_applications', 'requirements',
)


def _get_job(job_id, for_update=False):
    qs = Job.objects.select_related('customer', 'category', 'assigned_tasker')
    if for_update:
        qs = qs.select_for_update(of=('self',))
    try:
        return qs.get(pk=job_id)
    except (Job.DoesNotExist, ValueError):
        raise NotFound("Job not found")


def _get_owned_job(user, job_id, for_update=False):
    job = _get_job(job_id, for_update=for_update)
    if job.customer_id != user.pk:
        raise Unauthorized()
    return job


def _get_application(application_id, for_update=False):
    qs = JobApplication.objects.select_related('job', 'tasker')
    if for_update:
        qs = qs.select_for_update(of=('self',))
    try:
        return qs.get(pk=application_id)
    except (JobApplication.DoesNotExist, ValueError):
        raise NotFound("Application not found")


def _validate_job_fields(data, partial=False):
    def missing(name):
        return (not partial or name in data) and not data.get(name)

    if missing('title') or (data.get('title') is not None and not str(data['title']).strip()):
        raise ValidationFailed("Job title is required")
    if missing('description') or (data.get('description') is not None and not str(data['description']).strip()):
        raise ValidationFailed("Job description is required")
    if missing('category'):
        raise ValidationFailed("Service selection is required")
    if missing('preferred_date'):
        raise ValidationFailed("Preferred date is required")
    if (not partial or 'customer_budget' in data) and (data.get('customer_budget') is None
                                                       or data['customer_budget'] <= 0):
        raise ValidationFailed("Valid budget is required")


def _resolve_category(category_id):
    try:
        return ServiceCategory.objects.get(pk=category_id, is_active=True)
    except (ServiceCategory.DoesNotExist, ValueError, TypeError):
        raise ValidationFailed("Service selection is required")


def _resolve_address(user, address_id):
    if not address_id:
        raise ValidationFailed("Job location is required")
    try:
        return Address.objects.get(pk=address_id, user=user)
    except (Address.DoesNotExist, ValueError, TypeError):
        raise ValidationFailed("Invalid address selected")


# ---- Missions ----

def create_job(user, data) -> Job:
    require_auth(user)
    _validate_job_fields(data)
    category = _resolve_category(data['category'])
    address = _resolve_address(user, data.get('address'))

    with transaction.atomic():
        job = Job.objects.create(
            customer=user,
            category=category,
            address=address,
            title=data['title'].strip(),
            description=data['description'].strip(),
            preferred_date=data['preferred_date'],
            preferred_time_start=data.get('preferred_time_start'),
            preferred_time_end=data.get('preferred_time_end'),
            is_flexible=data.get('is_flexible', False),
            estimated_duration=data.get('estimated_duration'),
            customer_budget=data['customer_budget'],
            max_applications=data.get('max_applications') or 10,
            requirements=data.get('requirements') or None,
            status='active',
        )
        stats, _ = UserStats.objects.select_for_update().get_or_create(user=user)
        stats.jobs_posted += 1
        stats.save(update_fields=['jobs_posted', 'updated_at'])
    logger.info("Mission %s publiée par %s", job.pk, user.pk)
    return job


def update_job(user, job_id, data) -> Job:
    require_auth(user)
    job = _get_owned_job(user, job_id)
    if job.assigned_tasker_id:
        raise InvalidState("Cannot edit job after a tasker has been assigned")
    _validate_job_fields(data, partial=True)

    changed = []
    for name in EDITABLE_FIELDS:
        if name not in data:
            continue
        value = data[name]
        if name == 'category':
            value = _resolve_category(value)
        elif name == 'address':
            value = _resolve_address(user, value)
        elif name in ('title', 'description'):
            value = value.strip()
        setattr(job, name, value)
        changed.append(name)
    if changed:
        job.save(update_fields=[*changed, 'updated_at'])
    return job


def update_job_status(user, job_id, new_status) -> Job:
    require_auth(user)
    job = _get_owned_job(user, job_id)
    if new_status not in CUSTOMER_SETTABLE_STATUSES:
        raise ValidationFailed("Invalid job status")
    if job.status in ('in_progress', 'completed'):
        raise InvalidState("Cannot change status of a job in progress or completed")
    if job.assigned_tasker_id and new_status != 'cancelled':
        # un job attribué ne peut plus qu'être annulé
        raise InvalidState("An assigned job can only be cancelled")
    job.status = new_status
    job.save(update_fields=['status', 'updated_at'])
    return job


def delete_job(user, job_id):
    require_auth(user)
    job = _get_owned_job(user, job_id)
    if job.assigned_tasker_id:
        raise InvalidState("Cannot delete job that has been assigned to a tasker")
    if job.status in ('in_progress', 'completed'):
        raise InvalidState("Cannot delete job in current status")
    job.delete()


def get_customer_jobs(user, status=None):
    require_auth(user)
    qs = (Job.objects.filter(customer=user)
          .select_related('category', 'address', 'assigned_tasker')
          .annotate(application_count=Count('applications', filter=~Q(applications__status='withdrawn'))))
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('-created_at', '-id')


def get_job_by_id(user, job_id) -> Job:
    require_auth(user)
    job = _get_job(job_id)
    visible = (
        job.is_open
        or user.pk in (job.customer_id, job.assigned_tasker_id)
        or job.applications.filter(tasker=user).exists()
    )
    if not visible:
        raise Unauthorized()
    return job


def list_open_jobs(category=None, search=None):
    qs = (Job.objects.filter(status__in=Job.OPEN_STATUSES, assigned_tasker__isnull=True)
          .select_related('category', 'customer', 'address')
          .annotate(application_count=Count('applications', filter=~Q(applications__status='withdrawn'))))
    if category:
        qs = qs.filter(category__slug=category) if not str(category).isdigit() else qs.filter(category_id=category)
    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))
    return qs.order_by('-created_at', '-id')


# ---- Candidatures ----

def apply_to_job(user, job_id, data) -> JobApplication:
    require_auth(user)
    if not user.is_tasker:
        raise Unauthorized("Only taskers can apply to jobs")
    price = data.get('proposed_price')
    if price is None or price <= 0:
        raise ValidationFailed("Valid price is required")

    with transaction.atomic():
        job = _get_job(job_id, for_update=True)
        if job.customer_id == user.pk:
            raise ValidationFailed("You cannot apply to your own job")
        if not job.is_open:
            raise InvalidState("Job is no longer accepting applications")
        if job.applications.filter(tasker=user).exists():
            raise InvalidState("You have already applied to this job")
        active = job.applications.exclude(status='withdrawn').count()
        if active >= job.max_applications:
            raise InvalidState("This job has reached the maximum number of applications")
        try:
            with transaction.atomic():
                application = JobApplication.objects.create(
                    job=job,
                    tasker=user,
                    proposed_price=price,
                    estimated_duration=data.get('estimated_duration'),
                    message=data.get('message') or None,
                )
        except IntegrityError:
            raise InvalidState("You have already applied to this job")

    notify(job.customer, 'application_received', 'application_received',
           related_job=job, related_user=user, job=job.title)
    return application


def withdraw_job_application(user, application_id) -> JobApplication:
    require_auth(user)
    application = _get_application(application_id)
    if application.tasker_id != user.pk:
        raise Unauthorized()
    if application.status != 'pending':
        raise InvalidState("Only pending applications can be withdrawn")
    application.status = 'withdrawn'
    application.save(update_fields=['status', 'updated_at'])
    return application


def get_job_applications(user, job_id):
    """Candidatures d'une mission (propriétaire uniquement), avec statut effectif."""
    require_auth(user)
    job = _get_owned_job(user, job_id)
    applications = list(job.applications.select_related('tasker', 'tasker__stats').order_by('-created_at'))
    for application in applications:
        application.job = job
        application.display_status = application.effective_status(job)
    return job, applications


def get_tasker_applications(user, status=None):
    require_auth(user)
    qs = JobApplication.objects.filter(tasker=user).select_related('job', 'job__category')
    if status:
        qs = qs.filter(status=status)
    applications = list(qs.order_by('-created_at'))
    for application in applications:
        application.display_status = application.effective_status()
    return applications


def accept_job_application(user, application_id) -> JobApplication:
    require_auth(user)
    with transaction.atomic():
        application = _get_application(application_id, for_update=True)
        job = _get_job(application.job_id, for_update=True)
        if job.customer_id != user.pk:
            raise Unauthorized()
        if not job.is_open:
            raise InvalidState("Job is no longer available for assignment")
        if application.status != 'pending':
            raise InvalidState("Application is no longer pending")

        job.assigned_tasker_id = application.tasker_id
        job.status = 'assigned'
        job.final_price = application.proposed_price
        job.save(update_fields=['assigned_tasker', 'status', 'final_price', 'updated_at'])

        application.status = 'accepted'
        application.save(update_fields=['status', 'updated_at'])

        others = list(job.applications.select_for_update(of=('self',))
                      .filter(status='pending').exclude(pk=application.pk).select_related('tasker'))
        JobApplication.objects.filter(pk__in=[a.pk for a in others]).update(
            status='rejected', updated_at=timezone.now())

    notify(application.tasker, 'application_accepted', 'application_accepted',
           related_job=job, related_user=user, job=job.title)
    for other in others:
        notify(other.tasker, 'application_rejected', 'application_rejected',
               related_job=job, related_user=user, job=job.title)
    logger.info("Candidature %s acceptée pour la mission %s (%d rejetées)", application.pk, job.pk, len(others))
    return application


def reject_job_application(user, application_id) -> JobApplication:
    require_auth(user)
    with transaction.atomic():
        application = _get_application(application_id, for_update=True)
        if application.job.customer_id != user.pk:
            raise Unauthorized()
        if application.status != 'pending':
            raise InvalidState("Application is no longer pending")
        application.status = 'rejected'
        application.save(update_fields=['status', 'updated_at'])

    notify(application.tasker, 'application_rejected', 'application_rejected',
           related_job=application.job, related_user=user, job=application.job.title)
    return application


# ---- Exécution ----

def _get_assigned_job(user, job_id, for_update=False):
    job = _get_job(job_id, for_update=for_update)
    if job.assigned_tasker_id != user.pk:
        raise Unauthorized()
    return job


def start_job(user, job_id) -> Job:
    require_auth(user)
    with transaction.atomic():
        job = _get_assigned_job(user, job_id, for_update=True)
        if job.status != 'assigned':
            raise InvalidState("Job cannot be started in its current status")
        job.status = 'in_progress'
        job.started_at = timezone.now()
        job.save(update_fields=['status', 'started_at', 'updated_at'])
    return job


def complete_job(user, job_id) -> Job:
    require_auth(user)
    with transaction.atomic():
        job = _get_assigned_job(user, job_id, for_update=True)
        if job.status != 'in_progress':
            raise InvalidState("Job must be in progress to be completed")
        job.status = 'completed'
        job.completed_at = timezone.now()
        job.save(update_fields=['status', 'completed_at', 'updated_at'])

    notify(job.customer, 'job_completed', 'job_completed', related_job=job, related_user=user, job=job.title)
    return job


def confirm_job_completion(user, job_id) -> Job:
    require_auth(user)
    with transaction.atomic():
        job = _get_owned_job(user, job_id, for_update=True)
        if job.status != 'completed':
            raise InvalidState("Job must be completed before confirmation", code='not_completed')
        if job.customer_confirmed_at is not None:
            raise InvalidState("Job completion already confirmed", code='already_confirmed')

        job.customer_confirmed_at = timezone.now()
        job.save(update_fields=['customer_confirmed_at', 'updated_at'])

        amount = job.final_price if job.final_price is not None else job.customer_budget
        if not Transaction.objects.filter(job=job, payment_status='paid').exists():
            fee = compute_platform_fee(amount)
            Transaction.objects.create(
                job=job,
                payer_id=job.customer_id,
                payee_id=job.assigned_tasker_id,
                transaction_type='job_payment',
                amount=amount,
                platform_fee=fee,
                net_amount=amount - fee,
                currency=job.currency,
                payment_status='paid',
                processed_at=job.customer_confirmed_at,
            )
        record_completion_stats(job.assigned_tasker_id, job.customer_id, amount)
    return job
