# market/api/views.py
import logging
from collections import OrderedDict
from functools import wraps

from django.db import DatabaseError
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import permissions, serializers, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes, throttle_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.throttling import SimpleRateThrottle

from market.models import TaskerProfile
from market.services import (
    accounts, bookings, catalog, finance, jobs, messaging, notifications, profile, reviews, wallet,
)
from market.services.errors import ActionError, NotFound, ValidationFailed

from .exceptions import first_error
from .serializers import (
    UserSerializer, UserStatsSerializer, PersonalInfoSerializer, AddressSerializer, TaskerProfileSerializer,
    TaskerProfileWriteSerializer, ServiceCategorySerializer, TaskerServiceSerializer,
    TaskerServiceWriteSerializer, BookingCreateSerializer, BookingStatusSerializer, CancelSerializer,
    ServiceBookingSerializer, JobWriteSerializer, JobStatusSerializer, JobSerializer,
    JobApplicationWriteSerializer, JobApplicationSerializer, TransactionSerializer, WalletTransactionSerializer,
    WalletRefundRequestSerializer, RefundCreateSerializer, RefundReceiptSerializer, AdminNotesSerializer,
    ReviewCreateSerializer, ReviewReplySerializer, ReviewSerializer, ConversationCreateSerializer,
    ConversationSerializer, MessageCreateSerializer, MessageSerializer, NotificationSerializer,
    NotificationReadSerializer, NotificationBulkSerializer,
)

logger = logging.getLogger(__name__)


# ---- Pagination (cohérente partout) ----
class DefaultPageNumberPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100

    def get_paginated_response(self, data):
        return Response(OrderedDict([
            ("success", True),
            ("count", self.page.paginator.count),
            ("next", self.get_next_link()),
            ("previous", self.get_previous_link()),
            ("results", data),
        ]))


class OTPRateThrottle(SimpleRateThrottle):
    """Limite les envois / vérifications de code par IP."""
    scope = "otp"

    def get_cache_key(self, request, view):
        return self.cache_format % {"scope": self.scope, "ident": self.get_ident(request)}


# ---- Helpers ----

def ok(status_code=status.HTTP_200_OK, **payload):
    return Response({"success": True, **payload}, status=status_code)


def service_action(view):
    """
    Frontière des actions : les erreurs métier deviennent
    {"success": false, "error": ..., "code": ...}, rien ne remonte plus haut.
    """
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ActionError as exc:
            logger.warning("%s refusé : %s (%s)", view.__name__, exc.message, exc.code)
            return Response(exc.as_payload(), status=exc.status_code)
        except serializers.ValidationError as exc:
            logger.info("%s : données invalides %s", view.__name__, exc.detail)
            return Response({"success": False, "error": first_error(exc.detail), "code": "validation_failed",
                             "details": exc.detail}, status=status.HTTP_400_BAD_REQUEST)
        except DatabaseError as exc:
            logger.exception("%s : erreur base de données", view.__name__)
            return Response({"success": False, "error": str(exc), "code": "database_error"},
                            status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return wrapper


def _validated(serializer_class, data, partial=False):
    ser = serializer_class(data=data, partial=partial)
    ser.is_valid(raise_exception=True)
    return ser.validated_data


def _int_param(request, name, default=None):
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationFailed(f"Invalid {name} parameter")


def _locale(request):
    return getattr(request, "LANGUAGE_CODE", None)


# ---- Auth ----

@api_view(["POST"])
@permission_classes([permissions.AllowAny])
@throttle_classes([OTPRateThrottle])
@service_action
def signup(request):
    """
    Body: { "email": ..., "password": ..., "role": "customer"|"tasker" }
    Envoie un code à 6 chiffres ; le compte est créé à la vérification.
    """
    data = request.data
    pending = accounts.sign_up(data.get("email"), data.get("password"), data.get("role"))
    return ok(status.HTTP_201_CREATED, email=pending.email, expires_at=pending.expires_at)


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
@throttle_classes([OTPRateThrottle])
@service_action
def verify_otp(request):
    """Body: { "email": ..., "code": "123456" } -> user + jetons JWT."""
    user, tokens = accounts.verify_otp(request.data.get("email"), request.data.get("code"))
    return ok(user=UserSerializer(user).data, **tokens)


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
@throttle_classes([OTPRateThrottle])
@service_action
def resend_otp(request):
    pending = accounts.resend_otp(request.data.get("email"))
    return ok(email=pending.email, expires_at=pending.expires_at)


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
@service_action
def login(request):
    user, tokens = accounts.login(request, request.data.get("email"), request.data.get("password"))
    return ok(user=UserSerializer(user).data, **tokens)


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
@service_action
def logout(request):
    accounts.logout(request.data.get("refresh"))
    return ok()


@api_view(["GET"])
@service_action
def me(request):
    """Retourne le profil de l'utilisateur authentifié."""
    user = request.user
    tasker_profile = TaskerProfile.objects.filter(user=user).first()
    return ok(
        user=UserSerializer(user).data,
        tasker_profile=TaskerProfileSerializer(tasker_profile).data if tasker_profile else None,
    )


# ---- Catégories / services ----

class ServiceCategoryViewSet(viewsets.GenericViewSet):
    permission_classes = [permissions.AllowAny]
    serializer_class = ServiceCategorySerializer

    @service_action
    def list(self, request):
        data = ServiceCategorySerializer(catalog.list_categories(), many=True, context={"request": request}).data
        return ok(categories=data)


class TaskerServiceViewSet(viewsets.GenericViewSet):
    serializer_class = TaskerServiceSerializer
    pagination_class = DefaultPageNumberPagination

    def get_permissions(self):
        if self.action == "list":
            return [permissions.AllowAny()]
        return super().get_permissions()

    @service_action
    def list(self, request):
        """GET /services/?category=<id|slug>&search=... : services actifs."""
        qs = catalog.search_services(request.query_params.get("category"), request.query_params.get("search"))
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(TaskerServiceSerializer(page, many=True, context={"request": request}).data)

    @service_action
    def create(self, request):
        data = _validated(TaskerServiceWriteSerializer, request.data)
        service = catalog.create_tasker_service(request.user, data)
        return ok(status.HTTP_201_CREATED, service=TaskerServiceSerializer(service).data)

    @service_action
    def partial_update(self, request, pk=None):
        data = _validated(TaskerServiceWriteSerializer, request.data, partial=True)
        service = catalog.update_tasker_service(request.user, pk, data)
        return ok(service=TaskerServiceSerializer(service).data)

    @service_action
    def destroy(self, request, pk=None):
        deleted = catalog.delete_tasker_service(request.user, pk)
        return ok(deleted=deleted, deactivated=not deleted)

    @action(detail=True, methods=["post"])
    @service_action
    def toggle(self, request, pk=None):
        """Body optionnel : { "status": "active"|"inactive" }."""
        service = catalog.toggle_service_status(request.user, pk, request.data.get("status"))
        return ok(service=TaskerServiceSerializer(service).data)

    @action(detail=False, methods=["get"])
    @service_action
    def mine(self, request):
        services = catalog.get_tasker_services(request.user.pk)
        return ok(services=TaskerServiceSerializer(services, many=True).data)


# ---- Réservations ----

class BookingViewSet(viewsets.GenericViewSet):
    serializer_class = ServiceBookingSerializer

    def _list(self, request, loader):
        result = loader(
            request.user,
            limit=_int_param(request, "limit", 20),
            offset=_int_param(request, "offset", 0),
            status=request.query_params.get("status") or None,
            include_total=request.query_params.get("include_total") in ("1", "true"),
        )
        return ok(
            bookings=ServiceBookingSerializer(result["bookings"], many=True).data,
            has_more=result["has_more"],
            total=result["total"],
        )

    @service_action
    def create(self, request):
        data = _validated(BookingCreateSerializer, request.data)
        booking, warnings = bookings.create_service_booking(request.user, data)
        return ok(status.HTTP_201_CREATED, booking=ServiceBookingSerializer(booking).data, warnings=warnings)

    @service_action
    def retrieve(self, request, pk=None):
        booking = bookings.get_booking_by_id(request.user, pk)
        return ok(booking=ServiceBookingSerializer(booking).data)

    @action(detail=False, methods=["get"])
    @service_action
    def tasker(self, request):
        return self._list(request, bookings.get_tasker_bookings)

    @action(detail=False, methods=["get"])
    @service_action
    def customer(self, request):
        return self._list(request, bookings.get_customer_bookings)

    @action(detail=True, methods=["post"], url_path="status")
    @service_action
    def update_status(self, request, pk=None):
        """
        Body: { "status": "accepted"|"confirmed"|"in_progress"|"completed"|"cancelled" }
        Réservé au tasker ; l'acceptation règle le paiement et les frais.
        """
        data = _validated(BookingStatusSerializer, request.data)
        booking = bookings.update_booking_status(request.user, pk, data["status"], locale=_locale(request))
        return ok(booking=ServiceBookingSerializer(booking).data)

    @action(detail=True, methods=["post"])
    @service_action
    def cancel(self, request, pk=None):
        data = _validated(CancelSerializer, request.data)
        booking = bookings.cancel_customer_booking(request.user, pk, data.get("reason"))
        return ok(booking=ServiceBookingSerializer(booking).data)

    @action(detail=True, methods=["post"])
    @service_action
    def confirm(self, request, pk=None):
        booking = bookings.confirm_booking_completion(request.user, pk)
        return ok(booking=ServiceBookingSerializer(booking).data)


# ---- Missions / candidatures ----

class JobViewSet(viewsets.GenericViewSet):
    serializer_class = JobSerializer
    pagination_class = DefaultPageNumberPagination

    @service_action
    def list(self, request):
        """GET /jobs/?category=<id|slug>&search=... : missions ouvertes."""
        qs = jobs.list_open_jobs(request.query_params.get("category"), request.query_params.get("search"))
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(JobSerializer(page, many=True, context={"request": request}).data)

    @service_action
    def create(self, request):
        data = _validated(JobWriteSerializer, request.data)
        job = jobs.create_job(request.user, data)
        return ok(status.HTTP_201_CREATED, job=JobSerializer(job).data)

    @service_action
    def retrieve(self, request, pk=None):
        job = jobs.get_job_by_id(request.user, pk)
        return ok(job=JobSerializer(job).data)

    @service_action
    def partial_update(self, request, pk=None):
        data = _validated(JobWriteSerializer, request.data, partial=True)
        job = jobs.update_job(request.user, pk, data)
        return ok(job=JobSerializer(job).data)

    @service_action
    def destroy(self, request, pk=None):
        jobs.delete_job(request.user, pk)
        return ok()

    @action(detail=False, methods=["get"])
    @service_action
    def mine(self, request):
        qs = jobs.get_customer_jobs(request.user, request.query_params.get("status") or None)
        return ok(jobs=JobSerializer(qs, many=True).data)

    @action(detail=True, methods=["post"], url_path="status")
    @service_action
    def update_status(self, request, pk=None):
        data = _validated(JobStatusSerializer, request.data)
        job = jobs.update_job_status(request.user, pk, data["status"])
        return ok(job=JobSerializer(job).data)

    @action(detail=True, methods=["post"])
    @service_action
    def apply(self, request, pk=None):
        data = _validated(JobApplicationWriteSerializer, request.data)
        application = jobs.apply_to_job(request.user, pk, data)
        return ok(status.HTTP_201_CREATED, application=JobApplicationSerializer(application).data)

    @action(detail=True, methods=["get"])
    @service_action
    def applications(self, request, pk=None):
        job, applications = jobs.get_job_applications(request.user, pk)
        return ok(job=JobSerializer(job).data, applications=JobApplicationSerializer(applications, many=True).data)

    @action(detail=True, methods=["post"])
    @service_action
    def start(self, request, pk=None):
        return ok(job=JobSerializer(jobs.start_job(request.user, pk)).data)

    @action(detail=True, methods=["post"])
    @service_action
    def complete(self, request, pk=None):
        return ok(job=JobSerializer(jobs.complete_job(request.user, pk)).data)

    @action(detail=True, methods=["post"])
    @service_action
    def confirm(self, request, pk=None):
        return ok(job=JobSerializer(jobs.confirm_job_completion(request.user, pk)).data)


class JobApplicationViewSet(viewsets.GenericViewSet):
    serializer_class = JobApplicationSerializer

    @service_action
    def list(self, request):
        """Candidatures du tasker connecté."""
        applications = jobs.get_tasker_applications(request.user, request.query_params.get("status") or None)
        return ok(applications=JobApplicationSerializer(applications, many=True).data)

    @action(detail=True, methods=["post"])
    @service_action
    def accept(self, request, pk=None):
        application = jobs.accept_job_application(request.user, pk)
        return ok(application=JobApplicationSerializer(application).data)

    @action(detail=True, methods=["post"])
    @service_action
    def reject(self, request, pk=None):
        application = jobs.reject_job_application(request.user, pk)
        return ok(application=JobApplicationSerializer(application).data)

    @action(detail=True, methods=["post"])
    @service_action
    def withdraw(self, request, pk=None):
        application = jobs.withdraw_job_application(request.user, pk)
        return ok(application=JobApplicationSerializer(application).data)


# ---- Avis ----

class ReviewViewSet(viewsets.GenericViewSet):
    serializer_class = ReviewSerializer

    @service_action
    def create(self, request):
        data = _validated(ReviewCreateSerializer, request.data)
        review = reviews.create_review(request.user, data)
        return ok(status.HTTP_201_CREATED, review=ReviewSerializer(review).data)

    @action(detail=True, methods=["post"])
    @service_action
    def reply(self, request, pk=None):
        data = _validated(ReviewReplySerializer, request.data)
        review = reviews.reply_to_review(request.user, pk, data.get("reply"))
        return ok(review=ReviewSerializer(review).data)


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
@service_action
def tasker_reviews(request, tasker_id):
    items, stats = reviews.get_tasker_reviews_with_stats(tasker_id)
    return ok(reviews=ReviewSerializer(items, many=True).data, stats=stats)


# ---- Messagerie ----

class ConversationViewSet(viewsets.GenericViewSet):
    serializer_class = ConversationSerializer

    @service_action
    def list(self, request):
        conversations = messaging.get_conversations(request.user)
        return ok(conversations=ConversationSerializer(conversations, many=True, context={"request": request}).data)

    @service_action
    def create(self, request):
        data = _validated(ConversationCreateSerializer, request.data)
        conversation, created = messaging.create_conversation(
            request.user, data["other_user_id"],
            job=data.get("job"), booking=data.get("booking"), tasker_service=data.get("tasker_service"),
            initial_message=data.get("initial_message"),
        )
        return ok(status.HTTP_201_CREATED if created else status.HTTP_200_OK,
                  conversation=ConversationSerializer(conversation, context={"request": request}).data,
                  created=created)

    @action(detail=True, methods=["get", "post"])
    @service_action
    def messages(self, request, pk=None):
        """
        GET  ?limit=50&before=<message_id> : page du plus récent au plus ancien.
        POST { "content": ..., "attachment_url": ... }
        """
        if request.method == "POST":
            data = _validated(MessageCreateSerializer, request.data)
            message = messaging.send_message(request.user, pk, data.get("content"), data.get("attachment_url"))
            return ok(status.HTTP_201_CREATED, message=MessageSerializer(message).data)

        result = messaging.get_messages(
            request.user, pk, limit=_int_param(request, "limit", 50), before=_int_param(request, "before"))
        return ok(messages=MessageSerializer(result["messages"], many=True).data, has_more=result["has_more"])

    @action(detail=True, methods=["post"])
    @service_action
    def read(self, request, pk=None):
        return ok(updated=messaging.mark_messages_as_read(request.user, pk))

    @action(detail=False, methods=["get"], url_path="unread-count")
    @service_action
    def unread_count(self, request):
        return ok(count=messaging.get_unread_message_count(request.user))


# ---- Notifications ----

class NotificationViewSet(viewsets.GenericViewSet):
    serializer_class = NotificationSerializer
    pagination_class = DefaultPageNumberPagination

    @service_action
    def list(self, request):
        unread_only = request.query_params.get("unread") in ("1", "true")
        page = self.paginate_queryset(notifications.list_notifications(request.user, unread_only))
        return self.get_paginated_response(NotificationSerializer(page, many=True).data)

    @service_action
    def partial_update(self, request, pk=None):
        data = _validated(NotificationReadSerializer, request.data)
        notification = notifications.set_read(request.user, pk, data["is_read"])
        return ok(notification=NotificationSerializer(notification).data)

    @service_action
    def destroy(self, request, pk=None):
        notifications.delete_notification(request.user, pk)
        return ok()

    @action(detail=False, methods=["post"], url_path="read-all")
    @service_action
    def read_all(self, request):
        return ok(updated=notifications.mark_all_read(request.user))

    @action(detail=False, methods=["post"])
    @service_action
    def bulk(self, request):
        data = _validated(NotificationBulkSerializer, request.data)
        return ok(updated=notifications.bulk_update(request.user, data["ids"], data["is_read"]))

    @action(detail=False, methods=["get"])
    @service_action
    def stats(self, request):
        return ok(stats=notifications.notification_stats(request.user))


# ---- Profil ----

@api_view(["PATCH"])
@service_action
def personal_info(request):
    data = _validated(PersonalInfoSerializer, request.data, partial=True)
    user = profile.update_personal_info(request.user, data)
    return ok(user=UserSerializer(user).data)


@api_view(["GET", "POST"])
@service_action
def addresses(request):
    if request.method == "POST":
        data = _validated(AddressSerializer, request.data)
        address = profile.add_address(request.user, data)
        return ok(status.HTTP_201_CREATED, address=AddressSerializer(address).data)
    return ok(addresses=AddressSerializer(request.user.addresses.all(), many=True).data)


@api_view(["DELETE"])
@service_action
def address_detail(request, address_id):
    profile.delete_address(request.user, address_id)
    return ok()


@api_view(["GET", "POST", "PATCH"])
@service_action
def tasker_profile(request):
    if request.method == "POST":
        data = _validated(TaskerProfileWriteSerializer, request.data)
        created = profile.create_tasker_profile(request.user, data)
        return ok(status.HTTP_201_CREATED, profile=TaskerProfileSerializer(created).data)
    if request.method == "PATCH":
        data = _validated(TaskerProfileWriteSerializer, request.data, partial=True)
        updated = profile.update_tasker_profile(request.user, data)
        return ok(profile=TaskerProfileSerializer(updated).data)

    current = TaskerProfile.objects.select_related("user").filter(user=request.user).first()
    if current is None:
        raise NotFound("Tasker profile not found")
    return ok(profile=TaskerProfileSerializer(current).data)


@api_view(["GET"])
@service_action
def profile_completion(request):
    return ok(**profile.get_profile_completion(request.user))


# ---- Finances ----

@api_view(["GET"])
@service_action
def finance_overview(request):
    data = finance.get_tasker_finance_data(request.user)
    return ok(
        stats=data["stats"],
        wallet_balance=data["wallet_balance"],
        user_stats=UserStatsSerializer(data["user_stats"]).data if data["user_stats"] else None,
        transactions=TransactionSerializer(data["transactions"], many=True).data,
    )


@api_view(["GET"])
@service_action
def finance_transactions(request):
    paginator = DefaultPageNumberPagination()
    qs = finance.get_tasker_transactions(request.user, request.query_params.get("status") or None)
    page = paginator.paginate_queryset(qs, request)
    return paginator.get_paginated_response(TransactionSerializer(page, many=True).data)


@api_view(["GET"])
@service_action
def finance_earnings(request):
    period = request.query_params.get("period") or "month"
    rows = finance.get_tasker_earnings_by_period(request.user, period, _int_param(request, "limit", 30))
    return ok(period=period, earnings=rows)


@api_view(["GET"])
@service_action
def wallet_history(request):
    paginator = DefaultPageNumberPagination()
    qs = finance.get_wallet_history(request.user, request.query_params.get("type") or None)
    page = paginator.paginate_queryset(qs, request)
    return paginator.get_paginated_response(WalletTransactionSerializer(page, many=True).data)


# ---- Remboursements portefeuille ----

class WalletRefundViewSet(viewsets.GenericViewSet):
    serializer_class = WalletRefundRequestSerializer
    pagination_class = DefaultPageNumberPagination
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["status", "tasker"]

    @service_action
    def list(self, request):
        refunds = wallet.get_tasker_refund_requests(request.user)
        return ok(requests=WalletRefundRequestSerializer(refunds, many=True).data)

    @service_action
    def create(self, request):
        data = _validated(RefundCreateSerializer, request.data)
        refund = wallet.create_wallet_refund_request(request.user, data["amount"])
        return ok(status.HTTP_201_CREATED, request=WalletRefundRequestSerializer(refund).data)

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    @service_action
    def confirm_payment(self, request, pk=None):
        data = _validated(RefundReceiptSerializer, request.data)
        refund = wallet.confirm_refund_payment(request.user, pk, data.get("receipt_url"))
        return ok(request=WalletRefundRequestSerializer(refund).data)

    @action(detail=False, methods=["get"], url_path="all")
    @service_action
    def all_requests(self, request):
        qs = self.filter_queryset(wallet.get_all_refund_requests(request.user))
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(WalletRefundRequestSerializer(page, many=True).data)

    @action(detail=True, methods=["post"])
    @service_action
    def verify(self, request, pk=None):
        data = _validated(AdminNotesSerializer, request.data)
        refund = wallet.mark_refund_verifying(request.user, pk, data.get("notes"))
        return ok(request=WalletRefundRequestSerializer(refund).data)

    @action(detail=True, methods=["post"])
    @service_action
    def approve(self, request, pk=None):
        data = _validated(AdminNotesSerializer, request.data)
        refund = wallet.approve_refund_request(request.user, pk, data.get("notes"))
        return ok(request=WalletRefundRequestSerializer(refund).data)

    @action(detail=True, methods=["post"])
    @service_action
    def reject(self, request, pk=None):
        data = _validated(AdminNotesSerializer, request.data)
        refund = wallet.reject_refund_request(request.user, pk, data.get("notes"))
        return ok(request=WalletRefundRequestSerializer(refund).data)
