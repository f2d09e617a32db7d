# bookings/models.py
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models.functions import Coalesce

from workers.models import Worker

TWO_PLACES = Decimal('0.01')


class BookingQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status__in=Booking.ACTIVE_STATUSES)

    def completed(self):
        """Completed bookings annotated with completed_at (end_time, else last update)"""
        return self.filter(status='completed').annotate(
            completed_at=Coalesce('end_time', 'updated_at')
        )


class Booking(models.Model):
    """
    A scheduled service engagement between a customer and a worker
    """

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('rejected', 'Rejected'),
        ('on-the-way', 'On the way'),
        ('in-progress', 'In progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    # worker-driven progression
    TRANSITIONS = {
        'pending': ['confirmed', 'rejected'],
        'confirmed': ['on-the-way', 'in-progress'],
        'on-the-way': ['in-progress'],
        'in-progress': ['completed'],
        'completed': [],
        'rejected': [],
        'cancelled': [],
    }

    STATUS_ALIASES = {'accepted': 'confirmed'}

    ACTIVE_STATUSES = ['pending', 'confirmed', 'on-the-way', 'in-progress']
    TRACKABLE_STATUSES = ['confirmed', 'on-the-way', 'in-progress']
    CANCELLABLE_STATUSES = ['pending', 'confirmed', 'on-the-way']
    CLOSED_STATUSES = ['completed', 'cancelled', 'rejected']

    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('refunded', 'Refunded'),
        ('failed', 'Failed'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('wallet', 'Wallet'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bookings'
    )
    worker = models.ForeignKey(
        Worker,
        on_delete=models.CASCADE,
        related_name='bookings'
    )

    service_type = models.CharField(max_length=100)
    description = models.TextField(max_length=1000, blank=True, default='')
    scheduled_date = models.DateField()
    scheduled_time = models.CharField(max_length=20, help_text="e.g. 10:30 or 10:30 AM")
    estimated_duration = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('1'),
        validators=[MinValueValidator(Decimal('0.5'))],
        help_text="Hours"
    )

    # Service location
    address = models.CharField(max_length=300)
    city = models.CharField(max_length=100, blank=True, default='')
    state = models.CharField(max_length=100, blank=True, default='')
    pincode = models.CharField(max_length=10, blank=True, default='')
    landmark = models.CharField(max_length=200, blank=True, default='')
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    # Money
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default='pending')
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES, default='cash')
    total_price = models.DecimalField(
        max_digits=10, decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )
    platform_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    worker_earning = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))

    # Work tracking
    start_time = models.DateTimeField(null=True, blank=True)
    end_time = models.DateTimeField(null=True, blank=True)
    actual_duration = models.DecimalField(
        max_digits=6, decimal_places=2, null=True, blank=True, help_text="Hours"
    )

    cancellation_reason = models.TextField(blank=True, default='')
    rejection_reason = models.TextField(blank=True, default='')
    admin_notes = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status']),
            models.Index(fields=['worker', 'status']),
            models.Index(fields=['scheduled_date']),
        ]

    def __str__(self):
        return f"Booking #{self.pk} - {self.service_type} ({self.status})"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._original_total_price = self.__dict__.get('total_price')

    def save(self, *args, **kwargs):
        if self._state.adding or self.total_price != self._original_total_price:
            self.compute_fees()
            update_fields = kwargs.get('update_fields')
            if update_fields is not None:
                kwargs['update_fields'] = set(update_fields) | {'platform_fee', 'worker_earning'}
        super().save(*args, **kwargs)
        self._original_total_price = self.total_price

    def compute_fees(self):
        total = Decimal(str(self.total_price))
        fee_rate = Decimal(str(settings.PLATFORM_FEE_RATE))
        self.platform_fee = (total * fee_rate).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
        self.worker_earning = total - self.platform_fee

    @classmethod
    def normalize_status(cls, value):
        return cls.STATUS_ALIASES.get(value, value)

    def can_transition_to(self, new_status):
        return new_status in self.TRANSITIONS.get(self.status, [])

    @property
    def is_trackable(self):
        return self.status in self.TRACKABLE_STATUSES

    @property
    def is_cancellable(self):
        return self.status in self.CANCELLABLE_STATUSES

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    def is_participant(self, user):
        return self.user_id == user.id or self.worker.user_id == user.id
