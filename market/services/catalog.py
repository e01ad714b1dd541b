# services/catalog.py
from market.models import ServiceCategory, TaskerService
from market.services.errors import InvalidState, NotFound, Unauthorized, ValidationFailed, require_auth

ACTIVE_BOOKING_STATUSES = ('pending', 'accepted', 'confirmed', 'in_progress')
SERVICE_FIELDS = ('title', 'description', 'category', 'pricing_type', 'price', 'minimum_duration', 'service_status')


def list_categories():
    return ServiceCategory.objects.filter(is_active=True).order_by('sort_order', 'name_en')


def _get_own_service(user, service_id):
    try:
        service = TaskerService.objects.select_related('category').get(pk=service_id)
    except (TaskerService.DoesNotExist, ValueError):
        raise NotFound("Service not found")
    if service.tasker_id != user.pk:
        raise Unauthorized()
    return service


def _resolve_category(value):
    if isinstance(value, ServiceCategory):
        return value
    try:
        return ServiceCategory.objects.get(pk=value, is_active=True)
    except (ServiceCategory.DoesNotExist, ValueError, TypeError):
        raise ValidationFailed("Invalid service category")


def create_tasker_service(user, data) -> TaskerService:
    require_auth(user)
    if not user.is_tasker:
        raise Unauthorized("Only taskers can offer services")
    if not data.get('title') or not data.get('description') or not data.get('category'):
        raise ValidationFailed("Missing required fields")
    pricing_type = data.get('pricing_type') or 'fixed'
    price = data.get('price')
    if not price or price <= 0:
        if pricing_type == 'hourly':
            raise ValidationFailed("Hourly rate is required for hourly pricing")
        raise ValidationFailed("Base price is required for fixed pricing")

    return TaskerService.objects.create(
        tasker=user,
        category=_resolve_category(data['category']),
        title=data['title'].strip(),
        description=data['description'].strip(),
        pricing_type=pricing_type,
        price=price,
        minimum_duration=data.get('minimum_duration'),
    )


def update_tasker_service(user, service_id, data) -> TaskerService:
    require_auth(user)
    service = _get_own_service(user, service_id)
    changed = []
    for name in SERVICE_FIELDS:
        if name not in data:
            continue
        value = data[name]
        if name == 'category':
            value = _resolve_category(value)
        elif name == 'price' and (value is None or value <= 0):
            raise ValidationFailed("Valid price is required")
        setattr(service, name, value)
        changed.append(name)
    if changed:
        service.save(update_fields=[*changed, 'updated_at'])
    return service


def toggle_service_status(user, service_id, new_status=None) -> TaskerService:
    require_auth(user)
    service = _get_own_service(user, service_id)
    if new_status is None:
        new_status = 'inactive' if service.service_status == 'active' else 'active'
    if new_status not in dict(TaskerService.STATUS):
        raise ValidationFailed("Invalid service status")
    service.service_status = new_status
    service.save(update_fields=['service_status', 'updated_at'])
    return service


def delete_tasker_service(user, service_id) -> bool:
    """
    Supprime le service. Avec un historique de réservations il est seulement
    désactivé. Retourne True si la ligne a été supprimée.
    """
    require_auth(user)
    service = _get_own_service(user, service_id)
    if service.bookings.filter(status__in=ACTIVE_BOOKING_STATUSES).exists():
        raise InvalidState("Cannot delete service with active bookings")
    if service.bookings.exists():
        service.service_status = 'inactive'
        service.save(update_fields=['service_status', 'updated_at'])
        return False
    service.delete()
    return True


def get_tasker_services(tasker_id, active_only=False):
    qs = TaskerService.objects.filter(tasker_id=tasker_id).select_related('category', 'tasker')
    if active_only:
        qs = qs.filter(service_status='active')
    return qs.order_by('-created_at', '-id')


def search_services(category=None, search=None):
    qs = (TaskerService.objects.filter(service_status='active', tasker__is_active=True)
          .select_related('category', 'tasker', 'tasker__stats'))
    if category:
        qs = qs.filter(category_id=category) if str(category).isdigit() else qs.filter(category__slug=category)
    if search:
        qs = qs.filter(title__icontains=search) | qs.filter(description__icontains=search)
    return qs.order_by('-created_at', '-id')
