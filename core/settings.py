from pathlib import Path
from datetime import timedelta
import os
from dotenv import load_dotenv

# Project root
BASE_DIR = Path(__file__).resolve().parent.parent

# Environment variables from .env
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_IN_ENV")
DEBUG = os.getenv("DEBUG", "True") == "True"

# Phone numbers are validated against this region
DEFAULT_REGION = os.getenv('DEFAULT_REGION', 'IN')

_allowed = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")
ALLOWED_HOSTS = [h.strip() for h in _allowed.split(",") if h.strip()]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'rest_framework',
    'django_filters',
    'corsheaders',

    'users.apps.UsersConfig',
    'workers.apps.WorkersConfig',
    'bookings.apps.BookingsConfig',
    'reviews.apps.ReviewsConfig',
    'notifications.apps.NotificationsConfig',
    'admin_api.apps.AdminApiConfig',
]

# corsheaders goes first
MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'core.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'core.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('DATABASE_NAME', BASE_DIR / 'db.sqlite3'),
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {'min_length': 6},
    },
]

LANGUAGE_CODE = os.getenv('DEFAULT_LANG', 'en-us')
TIME_ZONE = os.getenv('TIME_ZONE', 'Asia/Kolkata')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# DRF + JWT
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
    'DEFAULT_FILTER_BACKENDS': (
        'django_filters.rest_framework.DjangoFilterBackend',
    ),
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=int(os.getenv('JWT_ACCESS_MINUTES', '60'))),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=int(os.getenv('JWT_REFRESH_DAYS', '30'))),
    'AUTH_HEADER_TYPES': ('Bearer',),
}

# CORS for the SPA in development
CORS_ALLOW_ALL_ORIGINS = DEBUG
_cors = os.getenv("CORS_ALLOWED_ORIGINS", "")
CORS_ALLOWED_ORIGINS = [o.strip() for o in _cors.split(",") if o.strip()]

# Local cache (admin password reset OTP)
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "localworker-cache",
    }
}

AUTH_USER_MODEL = 'users.User'

# ===============================================
# Marketplace rules
# ===============================================

PLATFORM_FEE_RATE = float(os.getenv('PLATFORM_FEE_RATE', '0.10'))
DEFAULT_WALLET_BALANCE = int(os.getenv('DEFAULT_WALLET_BALANCE', '50000'))
LOCATION_FRESHNESS_MINUTES = int(os.getenv('LOCATION_FRESHNESS_MINUTES', '30'))
LOCATION_HISTORY_LIMIT = int(os.getenv('LOCATION_HISTORY_LIMIT', '50'))
TRACKING_AVERAGE_SPEED_KMH = float(os.getenv('TRACKING_AVERAGE_SPEED_KMH', '30'))
NEARBY_DEFAULT_RADIUS_KM = float(os.getenv('NEARBY_DEFAULT_RADIUS_KM', '10'))
DEFAULT_PAGE_SIZE = int(os.getenv('DEFAULT_PAGE_SIZE', '10'))
MAX_PAGE_SIZE = 100

# Admin password reset
ADMIN_OTP_TTL_SECONDS = int(os.getenv('ADMIN_OTP_TTL_SECONDS', '600'))
ADMIN_OTP_MAX_ATTEMPTS = int(os.getenv('ADMIN_OTP_MAX_ATTEMPTS', '5'))

# ===============================================
# Email
# ===============================================

EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'django.core.mail.backends.console.EmailBackend')
EMAIL_HOST = os.getenv('EMAIL_HOST', 'smtp.gmail.com')
EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
EMAIL_USE_TLS = os.getenv('EMAIL_USE_TLS', 'True') == 'True'
EMAIL_HOST_USER = os.getenv('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.getenv('EMAIL_HOST_PASSWORD', '')
DEFAULT_FROM_EMAIL = os.getenv('DEFAULT_FROM_EMAIL', 'LocalWorker <no-reply@localworker.app>')

# ===============================================
# Uploads
# ===============================================

MEDIA_URL = '/media/'
MEDIA_ROOT = Path(os.getenv('MEDIA_ROOT', BASE_DIR / 'media'))

FILE_UPLOAD_MAX_MEMORY_SIZE = 5242880  # 5MB
DATA_UPLOAD_MAX_MEMORY_SIZE = 5242880  # 5MB
FILE_UPLOAD_PERMISSIONS = 0o644

ALLOWED_IMAGE_TYPES = ['image/jpeg', 'image/png', 'image/jpg']
ALLOWED_DOCUMENT_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.pdf']
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB
MAX_DOCUMENT_SIZE = 5 * 1024 * 1024  # 5MB

if DEBUG:
    os.makedirs(MEDIA_ROOT, exist_ok=True)

# ===============================================
# Firebase
# ===============================================

FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID', '')
FIREBASE_CREDENTIALS_PATH = Path(os.getenv(
    'FIREBASE_CREDENTIALS_PATH', BASE_DIR / 'secrets' / 'serviceAccountKey.json'
))

FIREBASE_NOTIFICATIONS = {
    'DEFAULT_SOUND': os.getenv('FIREBASE_DEFAULT_SOUND', 'default'),
    'DEFAULT_PRIORITY': os.getenv('FIREBASE_DEFAULT_PRIORITY', 'high'),
    'ENABLED': os.getenv('FIREBASE_ENABLED', 'True') == 'True',
}

# ===============================================
# Logging
# ===============================================

LOGS_DIR = Path(os.getenv('LOGS_DIR', BASE_DIR / 'logs'))
LOGS_DIR.mkdir(exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': LOGS_DIR / 'django.log',
            'formatter': 'verbose',
        },
        'localworker_file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': LOGS_DIR / 'localworker.log',
            'formatter': 'verbose',
        },
        'firebase_file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': LOGS_DIR / 'firebase_notifications.log',
            'formatter': 'verbose',
        },
        'console': {
            'level': 'DEBUG' if DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['file', 'console'] if DEBUG else ['file'],
            'level': 'INFO',
            'propagate': False,
        },
        'localworker': {
            'handlers': ['localworker_file', 'console'] if DEBUG else ['localworker_file'],
            'level': 'INFO',
            'propagate': False,
        },
        'firebase_notifications': {
            'handlers': ['firebase_file', 'console'] if DEBUG else ['firebase_file'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}
