from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


def default_currency():
    return settings.MARKETPLACE['DEFAULT_CURRENCY']


# ---- USERS ----

class User(AbstractUser):
    ROLES = (
        ('customer', 'Customer'),
        ('tasker', 'Tasker'),
        ('both', 'Customer & Tasker'),
        ('admin', 'Administrator'),
    )
    VERIFICATION_STATUS = (
        ('pending', 'Pending'),
        ('verified', 'Verified'),
        ('rejected', 'Rejected'),
    )

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLES, default='customer', db_index=True)

    phone = models.CharField(max_length=20, blank=True, null=True, db_index=True)
    avatar_url = models.URLField(blank=True, null=True)
    date_of_birth = models.DateField(blank=True, null=True)
    preferred_language = models.CharField(max_length=5, default='fr')

    email_verified = models.BooleanField(default=False, db_index=True)
    verification_status = models.CharField(max_length=20, choices=VERIFICATION_STATUS, default='pending')

    wallet_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    # connexion par email
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=["role", "is_active"], name="users_role_active_idx"),
        ]

    def __str__(self):
        return f"{self.get_full_name() or self.email} ({self.role})"

    @property
    def is_tasker(self) -> bool:
        return self.role in ('tasker', 'both')

    @property
    def is_customer(self) -> bool:
        return self.role in ('customer', 'both')

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin' or self.is_staff


class UserStats(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, primary_key=True, related_name='stats')
    tasker_rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    total_reviews = models.PositiveIntegerField(default=0)
    completed_jobs = models.PositiveIntegerField(default=0)
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    response_time_hours = models.PositiveIntegerField(default=0)
    cancellation_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    jobs_posted = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'user_stats'
        verbose_name_plural = "User stats"

    def __str__(self):
        return f"Stats de {self.user}"


class SignupRequest(models.Model):
    """
    Compte en attente de vérification OTP. La ligne `users` n'est créée
    qu'après validation du code.
    """
    email = models.EmailField(unique=True)
    password_hash = models.CharField(max_length=256)
    role = models.CharField(max_length=20, choices=User.ROLES[:2], default='customer')
    code_hash = models.CharField(max_length=256)
    attempts = models.PositiveSmallIntegerField(default=0)
    expires_at = models.DateTimeField()
    last_sent_at = models.DateTimeField(default=timezone.now)
    verified_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'signup_requests'

    def __str__(self):
        return f"Inscription {self.email} ({self.role})"

    @property
    def is_expired(self) -> bool:
        return timezone.now() >= self.expires_at


class TaskerProfile(models.Model):
    EXPERIENCE_LEVELS = [
        ('beginner', 'Beginner'),
        ('intermediate', 'Intermediate'),
        ('expert', 'Expert'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, primary_key=True, related_name='tasker_profile')
    experience_level = models.CharField(max_length=20, choices=EXPERIENCE_LEVELS, default='beginner')
    bio = models.TextField(blank=True, null=True)
    identity_document_url = models.URLField(blank=True, null=True)
    service_radius_km = models.PositiveIntegerField(default=50)
    is_available = models.BooleanField(default=True, db_index=True)
    operation_hours = models.JSONField(default=list, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tasker_profiles'

    def missing_fields(self):
        user = self.user
        checks = [
            ("profile_photo", "Profile Photo", "personal", bool(user.avatar_url)),
            ("full_name", "Full Name", "personal", bool(user.first_name and user.last_name)),
            ("identity_verification", "Identity Verification", "personal",
             bool(self.identity_document_url) and user.verification_status == 'verified'),
            ("bio", "Bio & Experience", "bio", bool(self.bio and self.bio.strip())),
            ("service_area", "Service Area", "bio", bool(self.service_radius_km)),
            ("availability", "Availability", "availability", bool(self.operation_hours)),
            ("addresses", "Service Locations", "addresses", user.addresses.exists()),
        ]
        return [
            {"id": key, "label": label, "section": section, "required": True}
            for key, label, section, done in checks if not done
        ]

    def profile_completion(self) -> int:
        total = 7
        return round((total - len(self.missing_fields())) / total * 100)

    def __str__(self):
        return f"Profil de {self.user.get_full_name() or self.user.email}"


class Address(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='addresses', db_index=True)
    label = models.CharField(max_length=50, default='home')
    street_address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    region = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20, blank=True, null=True)
    country = models.CharField(max_length=2, default='MA')
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'addresses'
        ordering = ['-is_default', '-created_at']
        constraints = [
            UniqueConstraint(fields=['user'], condition=Q(is_default=True), name='addr_one_default_per_user'),
        ]

    def __str__(self):
        return f"{self.street_address}, {self.city}"


# ---- CATALOGUE ----

class ServiceCategory(models.Model):
    parent = models.ForeignKey('self', on_delete=models.CASCADE, null=True, blank=True, related_name='children')
    slug = models.SlugField(unique=True)
    name_en = models.CharField(max_length=100)
    name_fr = models.CharField(max_length=100)
    name_de = models.CharField(max_length=100, blank=True, default='')
    name_ar = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    icon = models.CharField(max_length=50, blank=True, null=True)
    is_active = models.BooleanField(default=True, db_index=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'service_categories'
        verbose_name_plural = "Service Categories"
        ordering = ['sort_order', 'name_en']

    def name_for(self, locale: str) -> str:
        return getattr(self, f"name_{locale}", None) or self.name_en

    def __str__(self):
        return self.name_en


class TaskerService(models.Model):
    PRICING_TYPES = [('fixed', 'Fixed'), ('hourly', 'Hourly'), ('per_item', 'Per item')]
    STATUS = [('active', 'Active'), ('inactive', 'Inactive')]

    tasker = models.ForeignKey(User, on_delete=models.CASCADE, related_name='tasker_services', db_index=True)
    category = models.ForeignKey(ServiceCategory, on_delete=models.PROTECT, related_name='tasker_services')
    title = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True, default='')
    pricing_type = models.CharField(max_length=20, choices=PRICING_TYPES, default='fixed')
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    minimum_duration = models.PositiveIntegerField(blank=True, null=True)  # heures
    service_status = models.CharField(max_length=20, choices=STATUS, default='active', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tasker_services'
        indexes = [
            models.Index(fields=["tasker", "service_status"], name="svc_tasker_status_idx"),
            models.Index(fields=["category", "service_status"], name="svc_category_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(price__gte=0), name="svc_price_gte_0"),
        ]

    def __str__(self):
        return f"{self.title} par {self.tasker.get_full_name() or self.tasker.email}"


# ---- BOOKINGS ----

class ServiceBooking(models.Model):
    BOOKING_TYPES = [('instant', 'Instant'), ('scheduled', 'Scheduled'), ('recurring', 'Recurring')]
    STATUS_CHOICES = [
        ('pending', 'Pending'), ('accepted', 'Accepted'), ('confirmed', 'Confirmed'),
        ('in_progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled'),
    ]
    PAYMENT_METHODS = [('cash', 'Cash'), ('online', 'Online'), ('wallet', 'Wallet'), ('pending', 'Pending')]

    customer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='customer_bookings', db_index=True)
    tasker = models.ForeignKey(User, on_delete=models.CASCADE, related_name='tasker_bookings', db_index=True)
    tasker_service = models.ForeignKey(TaskerService, on_delete=models.PROTECT, related_name='bookings')
    booking_type = models.CharField(max_length=20, choices=BOOKING_TYPES, default='instant')

    scheduled_date = models.DateField(blank=True, null=True)
    scheduled_time_start = models.TimeField(blank=True, null=True)
    scheduled_time_end = models.TimeField(blank=True, null=True)
    estimated_duration = models.PositiveIntegerField(blank=True, null=True)  # heures

    address = models.ForeignKey(Address, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    service_address = models.TextField(blank=True, null=True)

    agreed_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    currency = models.CharField(max_length=8, default=default_currency)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHODS, default='pending')
    customer_requirements = models.TextField(blank=True, null=True)

    accepted_at = models.DateTimeField(blank=True, null=True)
    confirmed_at = models.DateTimeField(blank=True, null=True)
    started_at = models.DateTimeField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    customer_confirmed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancelled_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    cancellation_reason = models.TextField(blank=True, null=True)
    cancellation_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'service_bookings'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=["tasker", "-created_at"], name="bk_tasker_created_idx"),
            models.Index(fields=["customer", "-created_at"], name="bk_customer_created_idx"),
            models.Index(fields=["status", "scheduled_date"], name="bk_status_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=~Q(customer=models.F('tasker')), name="bk_customer_not_tasker"),
            models.CheckConstraint(condition=Q(agreed_price__gte=0), name="bk_price_gte_0"),
        ]

    def __str__(self):
        return f"Réservation #{self.id} - {self.customer} / {self.tasker}"


# ---- JOBS ----

class Job(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'), ('active', 'Active'), ('assigned', 'Assigned'),
        ('in_progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled'),
    ]
    OPEN_STATUSES = ('pending', 'active')

    customer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='posted_jobs', db_index=True)
    category = models.ForeignKey(ServiceCategory, on_delete=models.PROTECT, related_name='jobs')
    address = models.ForeignKey(Address, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    title = models.CharField(max_length=200)
    description = models.TextField()
    preferred_date = models.DateField()
    preferred_time_start = models.TimeField(blank=True, null=True)
    preferred_time_end = models.TimeField(blank=True, null=True)
    is_flexible = models.BooleanField(default=False)
    estimated_duration = models.PositiveIntegerField(blank=True, null=True)
    customer_budget = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    final_price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    currency = models.CharField(max_length=8, default=default_currency)
    max_applications = models.PositiveIntegerField(default=10)
    requirements = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    assigned_tasker = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True,
                                        related_name='assigned_jobs')
    started_at = models.DateTimeField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    customer_confirmed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'jobs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=["customer", "-created_at"], name="job_customer_created_idx"),
            models.Index(fields=["status", "preferred_date"], name="job_status_date_idx"),
        ]

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES and self.assigned_tasker_id is None

    def __str__(self):
        return self.title


class JobApplication(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected'), ('withdrawn', 'Withdrawn'),
    ]

    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='applications')
    tasker = models.ForeignKey(User, on_delete=models.CASCADE, related_name='job_applications')
    proposed_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    estimated_duration = models.PositiveIntegerField(blank=True, null=True)
    message = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'job_applications'
        ordering = ['-created_at']
        constraints = [
            UniqueConstraint(fields=['job', 'tasker'], name='uniq_application_per_tasker'),
        ]

    def effective_status(self, job=None) -> str:
        job = job or self.job
        if job.assigned_tasker_id and job.assigned_tasker_id != self.tasker_id and self.status != 'withdrawn':
            return 'rejected'
        return self.status

    def __str__(self):
        return f"Candidature de {self.tasker} pour {self.job}"


# ---- PAIEMENTS / WALLET ----

class Transaction(models.Model):
    TRANSACTION_TYPES = [
        ('booking_payment', 'Booking payment'),
        ('service_payment', 'Service payment'),
        ('cash_payment', 'Cash payment'),
        ('job_payment', 'Job payment'),
        ('platform_fee', 'Platform fee'),
        ('refund', 'Refund'),
    ]
    BOOKING_PAYMENT_TYPES = ('booking_payment', 'service_payment', 'cash_payment')
    PAYMENT_STATUS = [('pending', 'Pending'), ('paid', 'Paid'), ('failed', 'Failed'), ('refunded', 'Refunded')]

    booking = models.ForeignKey(ServiceBooking, on_delete=models.CASCADE, null=True, blank=True,
                                related_name='transactions')
    job = models.ForeignKey(Job, on_delete=models.CASCADE, null=True, blank=True, related_name='transactions')
    payer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='payments_made')
    payee = models.ForeignKey(User, on_delete=models.CASCADE, related_name='payments_received')
    transaction_type = models.CharField(max_length=30, choices=TRANSACTION_TYPES, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    # montant des frais plateforme, pas un taux
    platform_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    net_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=8, default=default_currency)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS, default='pending', db_index=True)
    payment_method = models.CharField(max_length=20, blank=True, null=True)
    processed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'transactions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=["payee", "payment_status", "-created_at"], name="tx_payee_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(Q(booking__isnull=False, job__isnull=True) | Q(booking__isnull=True, job__isnull=False)),
                name="tx_booking_xor_job",
            ),
            UniqueConstraint(fields=['booking'], condition=Q(payment_status='paid', booking__isnull=False),
                             name='tx_one_paid_per_booking'),
            UniqueConstraint(fields=['job'], condition=Q(payment_status='paid', job__isnull=False),
                             name='tx_one_paid_per_job'),
        ]

    def __str__(self):
        return f"Transaction #{self.id} - {self.amount} {self.currency} ({self.payment_status})"


class WalletTransaction(models.Model):
    TRANSACTION_TYPES = [
        ('fee_deduction', 'Platform fee deduction'),
        ('top_up', 'Top-up'),
        ('refund', 'Refund payout'),
        ('adjustment', 'Adjustment'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='wallet_transactions', db_index=True)
    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPES, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance_before = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    related_booking = models.ForeignKey(ServiceBooking, on_delete=models.SET_NULL, null=True, blank=True,
                                        related_name='wallet_transactions')
    related_job = models.ForeignKey(Job, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='wallet_transactions')
    description = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'wallet_transactions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=["user", "-created_at"], name="wt_user_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(transaction_type__in=['fee_deduction', 'refund'], amount__lt=0)
                | ~Q(transaction_type__in=['fee_deduction', 'refund']),
                name="wt_debit_negative",
            ),
            UniqueConstraint(fields=['user', 'related_booking'],
                             condition=Q(transaction_type='fee_deduction', related_booking__isnull=False),
                             name='wt_one_fee_per_booking'),
        ]

    def __str__(self):
        return f"{self.get_transaction_type_display()} - {self.amount}"


class WalletRefundRequest(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('payment_confirmed', 'Payment confirmed'),
        ('admin_verifying', 'Admin verifying'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]
    OPEN_STATUSES = ('pending', 'payment_confirmed', 'admin_verifying')

    tasker = models.ForeignKey(User, on_delete=models.CASCADE, related_name='refund_requests', db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    reference_code = models.CharField(max_length=20, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    receipt_url = models.URLField(blank=True, null=True)
    payment_confirmed_at = models.DateTimeField(blank=True, null=True)
    admin_notes = models.TextField(blank=True, null=True)
    processed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    processed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'wallet_refund_requests'
        ordering = ['-created_at']

    def __str__(self):
        return f"Remboursement {self.reference_code} - {self.amount}"


# ---- AVIS ----

class Review(models.Model):
    rating_validators = [MinValueValidator(1), MaxValueValidator(5)]

    reviewer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reviews_given')
    reviewee = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reviews_received', db_index=True)
    job = models.ForeignKey(Job, on_delete=models.CASCADE, null=True, blank=True, related_name='reviews')
    booking = models.ForeignKey(ServiceBooking, on_delete=models.CASCADE, null=True, blank=True,
                                related_name='reviews')
    overall_rating = models.PositiveSmallIntegerField(validators=rating_validators)
    quality_rating = models.PositiveSmallIntegerField(validators=rating_validators, blank=True, null=True)
    communication_rating = models.PositiveSmallIntegerField(validators=rating_validators, blank=True, null=True)
    timeliness_rating = models.PositiveSmallIntegerField(validators=rating_validators, blank=True, null=True)
    comment = models.TextField(blank=True, null=True)
    reply_comment = models.TextField(blank=True, null=True)
    replied_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'reviews'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=(Q(booking__isnull=False, job__isnull=True) | Q(booking__isnull=True, job__isnull=False)),
                name="rv_booking_xor_job",
            ),
            models.CheckConstraint(condition=Q(overall_rating__gte=1, overall_rating__lte=5), name="rv_rating_1_5"),
            UniqueConstraint(fields=['reviewer', 'booking'], condition=Q(booking__isnull=False),
                             name='rv_one_per_booking'),
            UniqueConstraint(fields=['reviewer', 'job'], condition=Q(job__isnull=False),
                             name='rv_one_per_job'),
        ]

    def __str__(self):
        return f"Avis {self.overall_rating}/5 pour {self.reviewee}"


# ---- MESSAGERIE ----

class Conversation(models.Model):
    participant1 = models.ForeignKey(User, on_delete=models.CASCADE, related_name='+')
    participant2 = models.ForeignKey(User, on_delete=models.CASCADE, related_name='+')
    job = models.ForeignKey(Job, on_delete=models.SET_NULL, null=True, blank=True, related_name='conversations')
    booking = models.ForeignKey(ServiceBooking, on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='conversations')
    tasker_service = models.ForeignKey(TaskerService, on_delete=models.SET_NULL, null=True, blank=True,
                                       related_name='conversations')
    last_message_at = models.DateTimeField(blank=True, null=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'conversations'
        ordering = ['-last_message_at', '-created_at']
        constraints = [
            models.CheckConstraint(condition=~Q(participant1=models.F('participant2')), name="cv_distinct_participants"),
        ]

    def has_participant(self, user) -> bool:
        return user.pk in (self.participant1_id, self.participant2_id)

    def other_participant(self, user):
        return self.participant2 if self.participant1_id == user.pk else self.participant1

    def __str__(self):
        return f"Conversation #{self.id}"


class Message(models.Model):
    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sent_messages')
    receiver = models.ForeignKey(User, on_delete=models.CASCADE, related_name='received_messages')
    content = models.TextField()
    attachment_url = models.URLField(blank=True, null=True)
    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'messages'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=["conversation", "-created_at"], name="msg_conv_created_idx"),
            models.Index(fields=["receiver", "is_read"], name="msg_receiver_read_idx"),
        ]

    def __str__(self):
        return f"Message de {self.sender} dans la conversation #{self.conversation_id}"


# ---- NOTIFICATIONS ----

class Notification(models.Model):
    TYPES = [
        ('booking_created', _('Booking created')),
        ('booking_status', _('Booking status changed')),
        ('booking_cancelled', _('Booking cancelled')),
        ('payment_confirmed', _('Payment confirmed')),
        ('job_created', _('Job created')),
        ('application_received', _('Application received')),
        ('application_accepted', _('Application accepted')),
        ('application_rejected', _('Application rejected')),
        ('job_completed', _('Job completed')),
        ('review_received', _('Review received')),
        ('message_received', _('Message received')),
        ('wallet_refund_request_created', _('Refund request created')),
        ('wallet_refund_approved', _('Refund approved')),
        ('wallet_refund_rejected', _('Refund rejected')),
        ('profile_incomplete', _('Profile incomplete')),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications', db_index=True)
    type = models.CharField(max_length=50, choices=TYPES, db_index=True)
    title = models.CharField(max_length=200)
    message = models.TextField()
    related_booking = models.ForeignKey(ServiceBooking, on_delete=models.SET_NULL, null=True, blank=True,
                                        related_name='+')
    related_job = models.ForeignKey(Job, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    related_user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    is_read = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=["user", "is_read", "-created_at"], name="notif_user_read_idx"),
        ]

    def __str__(self):
        return f"{self.type} -> {self.user}"
