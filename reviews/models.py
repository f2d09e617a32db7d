# reviews/models.py
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone

from bookings.models import Booking
from workers.models import Worker

RATING_VALIDATORS = [MinValueValidator(1), MaxValueValidator(5)]
SUB_RATINGS = ['punctuality', 'quality', 'behavior', 'value']


class Review(models.Model):
    """
    Customer review of a completed booking, one per booking.
    Saving or deleting a review refreshes the worker's rating.
    """
    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, related_name='review')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews_given'
    )
    worker = models.ForeignKey(Worker, on_delete=models.CASCADE, related_name='reviews')

    rating = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    comment = models.TextField(max_length=500, blank=True, default='')

    punctuality = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    quality = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    behavior = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    value = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)

    worker_response = models.TextField(max_length=500, blank=True, default='')
    response_date = models.DateTimeField(null=True, blank=True)

    helpful_count = models.PositiveIntegerField(default=0)
    helpful_by = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name='helpful_reviews'
    )
    is_verified = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Review"
        verbose_name_plural = "Reviews"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['worker', 'rating']),
            models.Index(fields=['user']),
        ]

    def __str__(self):
        return f"Review {self.rating}/5 for {self.worker.user.name} by {self.user.name}"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        self.worker.recalculate_rating()

    def delete(self, *args, **kwargs):
        worker = self.worker
        result = super().delete(*args, **kwargs)
        worker.recalculate_rating()
        return result

    def respond(self, text):
        self.worker_response = text
        self.response_date = timezone.now()
        self.save(update_fields=['worker_response', 'response_date', 'updated_at'])

    def toggle_helpful(self, user):
        """Returns True when the vote was added, False when removed"""
        if self.helpful_by.filter(pk=user.pk).exists():
            self.helpful_by.remove(user)
            added = False
        else:
            self.helpful_by.add(user)
            added = True
        self.helpful_count = self.helpful_by.count()
        self.save(update_fields=['helpful_count', 'updated_at'])
        return added
