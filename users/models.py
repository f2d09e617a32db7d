# users/models.py
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone

from .managers import UserManager


def default_wallet_balance():
    return Decimal(settings.DEFAULT_WALLET_BALANCE)


class User(AbstractUser):
    """
    Custom User Model
    Login is by email; role decides which API surface the account can use.
    """
    username = None
    first_name = None
    last_name = None

    name = models.CharField(max_length=50)
    email = models.EmailField(unique=True)
    phone = models.CharField(
        max_length=10,
        blank=True,
        default='',
        validators=[RegexValidator(r'^\d{10}$', "Phone must be a 10-digit number")],
        help_text="10-digit mobile number"
    )

    ROLE_CHOICES = [
        ('user', 'User'),
        ('worker', 'Worker'),
        ('admin', 'Admin'),
    ]
    role = models.CharField(
        max_length=10,
        choices=ROLE_CHOICES,
        default='user'
    )

    profile_image = models.ImageField(
        upload_to='avatars/',
        null=True, blank=True
    )

    # Wallet
    wallet = models.DecimalField(
        max_digits=12, decimal_places=2,
        default=default_wallet_balance,
        validators=[MinValueValidator(Decimal('0'))]
    )

    # Last known location
    address = models.CharField(max_length=300, blank=True, default='')
    city = models.CharField(max_length=100, blank=True, default='')
    state = models.CharField(max_length=100, blank=True, default='')
    pincode = models.CharField(max_length=10, blank=True, default='')
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    location_accuracy = models.FloatField(null=True, blank=True, help_text="Accuracy in meters")
    location_captured_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    objects = UserManager()

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        ordering = ['-created_at']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # deferred loads must not trigger a query here
        self._original_role = self.__dict__.get('role')

    def save(self, *args, **kwargs):
        if self.pk and self._original_role and self.role != self._original_role:
            raise ValidationError("Role cannot be changed after the account is created")
        if self.email:
            self.email = self.email.lower()
        super().save(*args, **kwargs)
        self._original_role = self.role

    def __str__(self):
        return f"{self.name or self.email} ({self.role})"

    def get_full_name(self):
        return self.name

    def get_short_name(self):
        return self.name

    @property
    def is_worker(self):
        return self.role == 'worker'

    @property
    def is_customer(self):
        return self.role == 'user'

    @property
    def is_admin(self):
        return self.role == 'admin'

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    def update_location(self, latitude, longitude, address='', accuracy=None, **address_parts):
        """Store the current location and append it to the history"""
        self.latitude = latitude
        self.longitude = longitude
        self.location_accuracy = accuracy
        self.location_captured_at = timezone.now()
        update_fields = ['latitude', 'longitude', 'location_accuracy', 'location_captured_at']
        if address:
            self.address = address
            update_fields.append('address')
        for field in ('city', 'state', 'pincode'):
            if address_parts.get(field):
                setattr(self, field, address_parts[field])
                update_fields.append(field)
        self.save(update_fields=update_fields)

        LocationHistory.objects.create(
            user=self,
            latitude=latitude,
            longitude=longitude,
            address=address or self.address,
            accuracy=accuracy,
        )
        LocationHistory.trim_for_user(self)


class WalletTransaction(models.Model):
    """Wallet credit/debit ledger"""

    TYPE_CHOICES = [
        ('credit', 'Credit'),
        ('debit', 'Debit'),
    ]

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='wallet_transactions'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    type = models.CharField(max_length=6, choices=TYPE_CHOICES)
    description = models.CharField(max_length=255, blank=True, default='')
    booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='wallet_transactions'
    )
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Wallet Transaction"
        verbose_name_plural = "Wallet Transactions"
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.type} {self.amount} for {self.user.email}"


class LocationHistory(models.Model):
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='location_history'
    )
    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)
    address = models.CharField(max_length=300, blank=True, default='')
    accuracy = models.FloatField(null=True, blank=True)
    captured_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Location History"
        verbose_name_plural = "Location History"
        ordering = ['-captured_at', '-id']
        indexes = [
            models.Index(fields=['user', '-captured_at']),
        ]

    def __str__(self):
        return f"{self.user.email} @ {self.latitude},{self.longitude}"

    @classmethod
    def trim_for_user(cls, user):
        """Keep only the newest LOCATION_HISTORY_LIMIT entries"""
        keep_ids = list(
            cls.objects.filter(user=user).values_list('id', flat=True)[:settings.LOCATION_HISTORY_LIMIT]
        )
        cls.objects.filter(user=user).exclude(id__in=keep_ids).delete()
