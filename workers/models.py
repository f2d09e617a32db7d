# workers/models.py
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Avg, Count
from django.utils import timezone

from core.utils import haversine_distance

CATEGORY_CHOICES = [
    ('Plumber', 'Plumber'),
    ('Electrician', 'Electrician'),
    ('Carpenter', 'Carpenter'),
    ('Painter', 'Painter'),
    ('Cleaner', 'Cleaner'),
    ('AC Repair', 'AC Repair'),
    ('Appliance Repair', 'Appliance Repair'),
    ('Pest Control', 'Pest Control'),
    ('Gardener', 'Gardener'),
    ('Driver', 'Driver'),
    ('Moving & Packing', 'Moving & Packing'),
    ('Beauty & Salon', 'Beauty & Salon'),
    ('Tutor', 'Tutor'),
    ('Other', 'Other'),
]
CATEGORIES = [value for value, _ in CATEGORY_CHOICES]

DOCUMENT_TYPES = ['id_proof', 'address_proof', 'certificate']


def worker_document_path(instance, filename):
    return f"worker_documents/{instance.user_id}/{filename}"


class Worker(models.Model):
    """
    Worker profile - one per worker-role user.
    Publicly bookable only once an admin approves it.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='worker_profile',
        limit_choices_to={'role': 'worker'}
    )

    # Services
    categories = models.JSONField(default=list, help_text="Subset of CATEGORIES")
    skills = models.JSONField(default=list, blank=True)
    experience = models.PositiveIntegerField(default=0, help_text="Years of experience")
    price_per_hour = models.DecimalField(
        max_digits=10, decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )
    service_radius = models.FloatField(default=10, help_text="Service radius in km")
    bio = models.TextField(max_length=500, blank=True, default='')
    working_hours = models.JSONField(
        default=dict, blank=True,
        help_text="{'monday': {'start': '09:00', 'end': '18:00', 'is_available': true}, ...}"
    )

    # Location
    address = models.CharField(max_length=300, blank=True, default='')
    city = models.CharField(max_length=100, blank=True, default='')
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    location_accuracy = models.FloatField(null=True, blank=True, help_text="Accuracy in meters")
    location_updated_at = models.DateTimeField(null=True, blank=True)
    location_sharing_enabled = models.BooleanField(default=True)

    # Availability
    AVAILABILITY_CHOICES = [
        ('available', 'Available'),
        ('busy', 'Busy'),
        ('offline', 'Offline'),
    ]
    availability = models.CharField(max_length=10, choices=AVAILABILITY_CHOICES, default='available')
    is_active = models.BooleanField(default=True)

    # Approval
    APPROVAL_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]
    approval_status = models.CharField(max_length=10, choices=APPROVAL_CHOICES, default='pending')
    approval_message = models.TextField(blank=True, default='')
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='approved_workers'
    )
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='rejected_workers'
    )
    rejection_reason = models.TextField(blank=True, default='')
    verified = models.BooleanField(default=False)

    # Documents
    id_proof = models.FileField(upload_to=worker_document_path, null=True, blank=True)
    address_proof = models.FileField(upload_to=worker_document_path, null=True, blank=True)
    certificate = models.FileField(upload_to=worker_document_path, null=True, blank=True)

    # Stats (maintained by bookings/reviews)
    rating = models.DecimalField(
        max_digits=3, decimal_places=2,
        default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('5'))]
    )
    total_reviews = models.PositiveIntegerField(default=0)
    total_jobs = models.PositiveIntegerField(default=0)
    completed_jobs = models.PositiveIntegerField(default=0)
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Worker"
        verbose_name_plural = "Workers"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['approval_status', 'availability', 'is_active']),
        ]

    def __str__(self):
        return f"Worker: {self.user.name} - {', '.join(self.categories)}"

    @property
    def is_bookable(self):
        return (
            self.approval_status == 'approved' and
            self.is_active and
            self.user.is_active and
            self.availability == 'available'
        )

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    @property
    def completion_rate(self):
        if not self.total_jobs:
            return 0.0
        return round(self.completed_jobs / self.total_jobs * 100, 1)

    # ====== Location ======

    def update_location(self, latitude, longitude, accuracy=None):
        self.latitude = latitude
        self.longitude = longitude
        self.location_accuracy = accuracy
        self.location_updated_at = timezone.now()
        self.save(update_fields=[
            'latitude', 'longitude', 'location_accuracy', 'location_updated_at', 'updated_at'
        ])

    def toggle_location_sharing(self, enabled):
        self.location_sharing_enabled = enabled
        self.save(update_fields=['location_sharing_enabled', 'updated_at'])
        return self.location_sharing_enabled

    def is_location_fresh(self, minutes=None):
        if not self.location_updated_at:
            return False
        minutes = minutes or settings.LOCATION_FRESHNESS_MINUTES
        return timezone.now() - self.location_updated_at < timedelta(minutes=minutes)

    @property
    def location_status(self):
        if not self.location_sharing_enabled:
            return 'disabled'
        if self.is_location_fresh():
            return 'active'
        return 'stale'

    def distance_to(self, latitude, longitude):
        """Distance in km, None when either side has no coordinates"""
        if not self.has_location or latitude is None or longitude is None:
            return None
        return haversine_distance(self.latitude, self.longitude, latitude, longitude)

    # ====== Stats ======

    def recalculate_rating(self):
        """Recompute rating/total_reviews from the reviews table"""
        stats = self.reviews.aggregate(avg=Avg('rating'), count=Count('id'))
        avg = stats['avg'] or 0
        self.rating = Decimal(str(round(avg, 2)))
        self.total_reviews = stats['count']
        self.save(update_fields=['rating', 'total_reviews', 'updated_at'])
