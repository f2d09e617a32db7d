# users/managers.py
from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Manager for the email-login User model
    """

    def _create_user(self, email, password, role='user', **extra_fields):
        if not email:
            raise ValueError('The email must be set')

        email = self.normalize_email(email).lower()
        user = self.model(email=email, role=role, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, role='user', **extra_fields):
        """Create a customer/worker account"""
        extra_fields.setdefault('is_staff', role == 'admin')
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, role, **extra_fields)

    def create_superuser(self, email=None, password=None, **extra_fields):
        if not email:
            raise ValueError('Superuser must have email')

        extra_fields.pop('role', None)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self._create_user(email, password, 'admin', **extra_fields)

    def create_worker(self, email, password, **extra_fields):
        return self.create_user(email, password, 'worker', **extra_fields)

    def create_admin(self, email, password, **extra_fields):
        """Admin accounts are staff so DRF's IsAdminUser lets them in"""
        extra_fields.setdefault('is_staff', True)
        return self.create_user(email, password, 'admin', **extra_fields)
