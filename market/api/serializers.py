# market/api/serializers.py
from django.utils import translation
from rest_framework import serializers

from market.i18n import normalize_locale
from market.models import (
    User, UserStats, TaskerProfile, Address, ServiceCategory, TaskerService, ServiceBooking,
    Job, JobApplication, Transaction, WalletTransaction, WalletRefundRequest, Review, Conversation, Message,
    Notification,
)


# ========= UTIL READ-ONLY MINI SERIALIZERS =========

class UserMiniSerializer(serializers.ModelSerializer):
    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "full_name", "avatar_url", "role"]

    def get_full_name(self, obj):
        return obj.get_full_name() or obj.email


class ServiceCategorySerializer(serializers.ModelSerializer):
    # nom dans la langue de la requête
    name = serializers.SerializerMethodField()

    class Meta:
        model = ServiceCategory
        fields = ["id", "slug", "name", "name_en", "name_fr", "name_de", "name_ar", "description", "icon",
                  "parent", "sort_order"]

    def get_name(self, obj):
        request = self.context.get("request")
        locale = getattr(request, "LANGUAGE_CODE", None) or translation.get_language()
        return obj.name_for(normalize_locale(locale))


# ========= USER / PROFIL =========

class UserStatsSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserStats
        fields = ["tasker_rating", "total_reviews", "completed_jobs", "total_earnings", "response_time_hours",
                  "cancellation_rate", "jobs_posted", "total_spent", "updated_at"]


class UserSerializer(serializers.ModelSerializer):
    stats = UserStatsSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            "id", "username", "email", "first_name", "last_name", "role", "phone", "avatar_url",
            "date_of_birth", "preferred_language", "email_verified", "verification_status",
            "wallet_balance", "date_joined", "last_login", "stats",
        ]
        read_only_fields = fields


class PersonalInfoSerializer(serializers.Serializer):
    first_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    avatar_url = serializers.URLField(required=False, allow_blank=True, allow_null=True)
    preferred_language = serializers.ChoiceField(choices=["fr", "en", "de", "ar"], required=False)


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = ["id", "label", "street_address", "city", "region", "postal_code", "country", "is_default",
                  "created_at"]
        read_only_fields = ["id", "created_at"]
        extra_kwargs = {
            # contrôlés par le service (messages métier)
            "street_address": {"required": False, "allow_blank": True},
            "city": {"required": False, "allow_blank": True},
            "region": {"required": False, "allow_blank": True},
            "country": {"required": False, "max_length": None},
        }


class TaskerProfileSerializer(serializers.ModelSerializer):
    user = UserMiniSerializer(read_only=True)
    profile_completion = serializers.SerializerMethodField()

    class Meta:
        model = TaskerProfile
        fields = ["user", "experience_level", "bio", "identity_document_url", "service_radius_km", "is_available",
                  "operation_hours", "profile_completion", "updated_at"]
        read_only_fields = fields

    def get_profile_completion(self, obj):
        return obj.profile_completion()


class TaskerProfileWriteSerializer(serializers.Serializer):
    experience_level = serializers.ChoiceField(choices=TaskerProfile.EXPERIENCE_LEVELS, required=False)
    bio = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    identity_document_url = serializers.URLField(required=False, allow_blank=True, allow_null=True)
    service_radius_km = serializers.IntegerField(required=False, allow_null=True)
    is_available = serializers.BooleanField(required=False)
    operation_hours = serializers.JSONField(required=False)


# ========= SERVICES =========

class TaskerServiceSerializer(serializers.ModelSerializer):
    tasker = UserMiniSerializer(read_only=True)
    category_detail = ServiceCategorySerializer(source="category", read_only=True)

    class Meta:
        model = TaskerService
        fields = ["id", "tasker", "category", "category_detail", "title", "description", "pricing_type", "price",
                  "minimum_duration", "service_status", "created_at", "updated_at"]
        read_only_fields = fields


class TaskerServiceWriteSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, allow_blank=True, max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.IntegerField(required=False)
    pricing_type = serializers.ChoiceField(choices=TaskerService.PRICING_TYPES, required=False)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    minimum_duration = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    service_status = serializers.ChoiceField(choices=TaskerService.STATUS, required=False)


# ========= BOOKING =========

class BookingCreateSerializer(serializers.Serializer):
    tasker_service = serializers.IntegerField()
    booking_type = serializers.ChoiceField(choices=ServiceBooking.BOOKING_TYPES, default='instant')
    scheduled_date = serializers.DateField(required=False, allow_null=True)
    scheduled_time_start = serializers.TimeField(required=False, allow_null=True)
    scheduled_time_end = serializers.TimeField(required=False, allow_null=True)
    estimated_duration = serializers.IntegerField(required=False, allow_null=True)
    address = serializers.IntegerField(required=False, allow_null=True)
    service_address = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    agreed_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    customer_requirements = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    payment_method = serializers.ChoiceField(choices=ServiceBooking.PAYMENT_METHODS, default='pending')

    def validate(self, attrs):
        start = attrs.get("scheduled_time_start")
        end = attrs.get("scheduled_time_end")
        if start and end and end <= start:
            raise serializers.ValidationError("End time must be after start time")
        return attrs


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ServiceBooking.STATUS_CHOICES)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ServiceBookingSerializer(serializers.ModelSerializer):
    customer = UserMiniSerializer(read_only=True)
    tasker = UserMiniSerializer(read_only=True)
    service = serializers.SerializerMethodField()
    address = AddressSerializer(read_only=True)

    class Meta:
        model = ServiceBooking
        fields = [
            "id", "customer", "tasker", "tasker_service", "service", "booking_type",
            "scheduled_date", "scheduled_time_start", "scheduled_time_end", "estimated_duration",
            "address", "service_address", "agreed_price", "currency", "status", "payment_method",
            "customer_requirements",
            "accepted_at", "confirmed_at", "started_at", "completed_at", "customer_confirmed_at",
            "cancelled_at", "cancelled_by", "cancellation_reason", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_service(self, obj):
        service = obj.tasker_service
        return {"id": service.pk, "title": service.title, "pricing_type": service.pricing_type,
                "category": service.category_id}


# ========= JOBS =========

class JobWriteSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, allow_blank=True, max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.IntegerField(required=False, allow_null=True)
    address = serializers.IntegerField(required=False, allow_null=True)
    preferred_date = serializers.DateField(required=False, allow_null=True)
    preferred_time_start = serializers.TimeField(required=False, allow_null=True)
    preferred_time_end = serializers.TimeField(required=False, allow_null=True)
    is_flexible = serializers.BooleanField(required=False)
    estimated_duration = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    customer_budget = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    max_applications = serializers.IntegerField(required=False, min_value=1, max_value=100)
    requirements = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class JobStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Job.STATUS_CHOICES)


class JobSerializer(serializers.ModelSerializer):
    customer = UserMiniSerializer(read_only=True)
    assigned_tasker = UserMiniSerializer(read_only=True)
    category_detail = ServiceCategorySerializer(source="category", read_only=True)
    address = AddressSerializer(read_only=True)
    application_count = serializers.SerializerMethodField()

    class Meta:
        model = Job
        fields = [
            "id", "customer", "category", "category_detail", "address", "title", "description",
            "preferred_date", "preferred_time_start", "preferred_time_end", "is_flexible",
            "estimated_duration", "customer_budget", "final_price", "currency", "max_applications",
            "requirements", "status", "assigned_tasker", "application_count",
            "started_at", "completed_at", "customer_confirmed_at", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_application_count(self, obj):
        return getattr(obj, "application_count", None)


class JobApplicationWriteSerializer(serializers.Serializer):
    proposed_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    estimated_duration = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    message = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class JobApplicationSerializer(serializers.ModelSerializer):
    tasker = UserMiniSerializer(read_only=True)
    tasker_rating = serializers.SerializerMethodField()
    display_status = serializers.SerializerMethodField()
    job_title = serializers.CharField(source="job.title", read_only=True)

    class Meta:
        model = JobApplication
        fields = ["id", "job", "job_title", "tasker", "tasker_rating", "proposed_price", "estimated_duration",
                  "message", "status", "display_status", "created_at", "updated_at"]
        read_only_fields = fields

    def get_tasker_rating(self, obj):
        stats = getattr(obj.tasker, "stats", None)
        return stats.tasker_rating if stats else None

    def get_display_status(self, obj):
        return getattr(obj, "display_status", None) or obj.effective_status()


# ========= FINANCE / WALLET =========

class TransactionSerializer(serializers.ModelSerializer):
    payer = UserMiniSerializer(read_only=True)
    description = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = ["id", "booking", "job", "payer", "transaction_type", "amount", "platform_fee", "net_amount",
                  "currency", "payment_status", "payment_method", "processed_at", "created_at", "description"]
        read_only_fields = fields

    def get_description(self, obj):
        if obj.booking_id:
            return obj.booking.tasker_service.title
        if obj.job_id:
            return obj.job.title
        return None


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = ["id", "transaction_type", "amount", "balance_before", "balance_after", "related_booking",
                  "related_job", "description", "created_at"]
        read_only_fields = fields


class WalletRefundRequestSerializer(serializers.ModelSerializer):
    tasker = UserMiniSerializer(read_only=True)

    class Meta:
        model = WalletRefundRequest
        fields = ["id", "tasker", "amount", "reference_code", "status", "receipt_url", "payment_confirmed_at",
                  "admin_notes", "processed_by", "processed_at", "created_at", "updated_at"]
        read_only_fields = fields


class RefundCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class RefundReceiptSerializer(serializers.Serializer):
    receipt_url = serializers.URLField(required=False, allow_blank=True)


class AdminNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


# ========= REVIEWS =========

class ReviewCreateSerializer(serializers.Serializer):
    booking = serializers.IntegerField(required=False, allow_null=True)
    job = serializers.IntegerField(required=False, allow_null=True)
    overall_rating = serializers.IntegerField(min_value=1, max_value=5)
    quality_rating = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    communication_rating = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    timeliness_rating = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReviewReplySerializer(serializers.Serializer):
    reply = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)


class ReviewSerializer(serializers.ModelSerializer):
    reviewer = UserMiniSerializer(read_only=True)

    class Meta:
        model = Review
        fields = ["id", "reviewer", "reviewee", "booking", "job", "overall_rating", "quality_rating",
                  "communication_rating", "timeliness_rating", "comment", "reply_comment", "replied_at",
                  "created_at"]
        read_only_fields = fields


# ========= CONVERSATION / MESSAGE =========

class ConversationCreateSerializer(serializers.Serializer):
    other_user_id = serializers.IntegerField()
    job = serializers.IntegerField(required=False, allow_null=True)
    booking = serializers.IntegerField(required=False, allow_null=True)
    tasker_service = serializers.IntegerField(required=False, allow_null=True)
    initial_message = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ConversationSerializer(serializers.ModelSerializer):
    other_participant = serializers.SerializerMethodField()
    last_message = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = ["id", "other_participant", "job", "booking", "tasker_service", "last_message",
                  "unread_count", "last_message_at", "created_at"]
        read_only_fields = fields

    def get_other_participant(self, obj):
        user = self.context["request"].user
        return UserMiniSerializer(obj.other_participant(user)).data

    def get_last_message(self, obj):
        content = getattr(obj, "last_message_content", None)
        if content is None:
            return None
        return {"content": content, "sender_id": getattr(obj, "last_message_sender", None)}

    def get_unread_count(self, obj):
        return getattr(obj, "unread_count", 0)


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    attachment_url = serializers.URLField(required=False, allow_blank=True, allow_null=True)


class MessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = ["id", "conversation", "sender", "receiver", "content", "attachment_url", "is_read", "read_at",
                  "created_at"]
        read_only_fields = fields


# ========= NOTIFICATIONS =========

class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "type", "title", "message", "related_booking", "related_job", "related_user", "is_read",
                  "created_at"]
        read_only_fields = fields


class NotificationReadSerializer(serializers.Serializer):
    is_read = serializers.BooleanField(default=True)


class NotificationBulkSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)
    is_read = serializers.BooleanField(default=True)
