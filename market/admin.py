from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin
from django.utils.html import format_html

from .models import (
    User, UserStats, SignupRequest, TaskerProfile, Address, ServiceCategory, TaskerService, ServiceBooking,
    Job, JobApplication, Transaction, WalletTransaction, WalletRefundRequest, Review, Conversation, Message,
    Notification,
)
from .services.errors import ActionError
from .services.wallet import approve_refund_request


class UserStatsInline(admin.StackedInline):
    model = UserStats
    can_delete = False
    readonly_fields = ('tasker_rating', 'total_reviews', 'completed_jobs', 'total_earnings', 'jobs_posted',
                       'total_spent', 'updated_at')


class CustomUserAdmin(UserAdmin):
    model = User
    list_display = ('email', 'username', 'role', 'phone', 'email_verified', 'verification_status',
                    'wallet_balance', 'is_staff')
    list_filter = ('role', 'email_verified', 'verification_status', 'is_staff', 'is_superuser')
    search_fields = ('username', 'email', 'phone', 'first_name', 'last_name')
    ordering = ('-date_joined',)
    inlines = [UserStatsInline]

    fieldsets = (
        (None, {'fields': ('email', 'username', 'password')}),
        ('Informations personnelles', {
            'fields': (
                'first_name',
                'last_name',
                'phone',
                'avatar_url',
                'date_of_birth',
                'preferred_language',
            )
        }),
        ('Marketplace', {
            'fields': ('role', 'email_verified', 'verification_status', 'wallet_balance'),
        }),
        ('Permissions', {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions'
            ),
        }),
        ('Dates importantes', {'fields': ('last_login', 'date_joined')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'email',
                'username',
                'password1',
                'password2',
                'role',
                'is_staff',
                'is_superuser',
            ),
        }),
    )

    def get_form(self, request, obj=None, **kwargs):
        form = super().get_form(request, obj, **kwargs)
        is_superuser = request.user.is_superuser

        if not is_superuser:
            for name in ('is_superuser', 'user_permissions', 'wallet_balance'):
                if name in form.base_fields:
                    form.base_fields[name].disabled = True

        return form


admin.site.register(User, CustomUserAdmin)


@admin.register(SignupRequest)
class SignupRequestAdmin(admin.ModelAdmin):
    list_display = ('email', 'role', 'attempts', 'expires_at', 'last_sent_at')
    search_fields = ('email',)
    exclude = ('password_hash', 'code_hash')


@admin.register(TaskerProfile)
class TaskerProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'experience_level', 'service_radius_km', 'is_available', 'profile_completion')
    list_filter = ('experience_level', 'is_available')
    search_fields = ('user__email', 'user__first_name', 'user__last_name')
    readonly_fields = ('profile_completion', 'identity_document_link')

    def profile_completion(self, obj):
        return f"{obj.profile_completion()}%"

    profile_completion.short_description = "Complétion du profil"

    def identity_document_link(self, obj):
        if obj.identity_document_url:
            return format_html('<a href="{}" target="_blank">Voir le document</a>', obj.identity_document_url)
        return "-"

    identity_document_link.short_description = "Pièce d'identité"


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ('user', 'label', 'city', 'region', 'country', 'is_default')
    list_filter = ('country', 'is_default')
    search_fields = ('user__email', 'street_address', 'city')
    raw_id_fields = ('user',)


@admin.register(ServiceCategory)
class ServiceCategoryAdmin(admin.ModelAdmin):
    list_display = ('name_en', 'name_fr', 'slug', 'parent', 'is_active', 'sort_order', 'display_icon')
    list_filter = ('is_active', 'parent')
    search_fields = ('name_en', 'name_fr', 'name_ar', 'slug')
    prepopulated_fields = {'slug': ('name_en',)}
    readonly_fields = ('display_icon',)

    def display_icon(self, obj):
        return format_html('<i class="fa fa-{}"></i> {}', obj.icon, obj.icon) if obj.icon else '-'

    display_icon.short_description = 'Icon Preview'


@admin.register(TaskerService)
class TaskerServiceAdmin(admin.ModelAdmin):
    list_display = ('title', 'tasker', 'category', 'pricing_type', 'price', 'service_status')
    list_filter = ('service_status', 'pricing_type', 'category')
    search_fields = ('title', 'description', 'tasker__email')
    raw_id_fields = ('tasker', 'category')
    readonly_fields = ('created_at', 'updated_at')


@admin.register(ServiceBooking)
class ServiceBookingAdmin(admin.ModelAdmin):
    list_display = ('id', 'customer', 'tasker', 'tasker_service', 'status', 'agreed_price', 'scheduled_date')
    list_filter = ('status', 'booking_type', 'payment_method')
    search_fields = ('id', 'customer__email', 'tasker__email', 'tasker_service__title')
    raw_id_fields = ('customer', 'tasker', 'tasker_service', 'address', 'cancelled_by')
    readonly_fields = ('created_at', 'updated_at', 'accepted_at', 'completed_at', 'customer_confirmed_at')
    date_hierarchy = 'created_at'


class JobApplicationInline(admin.TabularInline):
    model = JobApplication
    extra = 0
    raw_id_fields = ('tasker',)
    readonly_fields = ('created_at',)


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'customer', 'category', 'status', 'customer_budget', 'assigned_tasker')
    list_filter = ('status', 'category')
    search_fields = ('title', 'description', 'customer__email')
    raw_id_fields = ('customer', 'assigned_tasker', 'address')
    inlines = [JobApplicationInline]
    date_hierarchy = 'created_at'


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'transaction_type', 'payer', 'payee', 'amount', 'platform_fee', 'payment_status',
                    'processed_at')
    list_filter = ('transaction_type', 'payment_status')
    search_fields = ('payer__email', 'payee__email')
    raw_id_fields = ('booking', 'job', 'payer', 'payee')


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'transaction_type', 'amount', 'balance_before', 'balance_after', 'created_at')
    list_filter = ('transaction_type',)
    search_fields = ('user__email', 'description')
    raw_id_fields = ('user', 'related_booking', 'related_job')


@admin.register(WalletRefundRequest)
class WalletRefundRequestAdmin(admin.ModelAdmin):
    list_display = ('reference_code', 'tasker', 'amount', 'status', 'receipt_link', 'created_at')
    list_filter = ('status',)
    search_fields = ('reference_code', 'tasker__email')
    readonly_fields = ('reference_code', 'processed_by', 'processed_at', 'payment_confirmed_at')
    actions = ['approve_requests']

    def receipt_link(self, obj):
        if obj.receipt_url:
            return format_html('<a href="{}" target="_blank">Reçu</a>', obj.receipt_url)
        return "-"

    receipt_link.short_description = "Reçu"

    @admin.action(description="Approuver les demandes sélectionnées")
    def approve_requests(self, request, queryset):
        approved = 0
        for refund in queryset:
            try:
                approve_refund_request(request.user, refund.pk)
                approved += 1
            except ActionError as exc:
                self.message_user(request, f"{refund.reference_code} : {exc.message}", level=messages.WARNING)
        self.message_user(request, f"{approved} demandes ont été approuvées avec succès.")


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('id', 'reviewer', 'reviewee', 'overall_rating', 'booking', 'job', 'created_at')
    list_filter = ('overall_rating',)
    search_fields = ('reviewer__email', 'reviewee__email', 'comment')
    raw_id_fields = ('reviewer', 'reviewee', 'booking', 'job')


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ('id', 'participant1', 'participant2', 'job', 'booking', 'last_message_at')
    raw_id_fields = ('participant1', 'participant2', 'job', 'booking', 'tasker_service')
    date_hierarchy = 'created_at'


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'conversation', 'sender', 'receiver', 'is_read', 'created_at')
    search_fields = ('conversation__id', 'sender__email', 'content')
    list_filter = ('is_read', 'created_at')
    date_hierarchy = 'created_at'


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'type', 'title', 'is_read', 'created_at')
    list_filter = ('type', 'is_read', 'created_at')
    search_fields = ('user__email', 'title', 'message')
    date_hierarchy = 'created_at'
