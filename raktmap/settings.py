# raktmap/settings.py
"""
Django settings for the RaktMap donor dispatch service.
Every deploy-specific value can be overridden through the environment.
"""
import os
from datetime import timedelta
from pathlib import Path

from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-raktmap-dev-key')
DEBUG = env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = [h for h in os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if h]


# ---------------------------
# Applications
# ---------------------------
INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'rest_framework',
    'donors',
    'hospitals.apps.HospitalsConfig',
    'api',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
]

ROOT_URLCONF = 'raktmap.urls'
WSGI_APPLICATION = 'raktmap.wsgi.application'


# ---------------------------
# Database
# ---------------------------
DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('TIME_ZONE', 'Asia/Kolkata')
USE_I18N = True
USE_TZ = True


# ---------------------------
# REST framework
# ---------------------------
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
        'rest_framework.authentication.BasicAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'EXCEPTION_HANDLER': 'api.exceptions.exception_handler',
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=int(os.environ.get('JWT_ACCESS_HOURS', 12))),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
}


# ---------------------------
# Dispatch & response tracking
# ---------------------------
# Public page donors open from the SMS link: <base>/r/<token>
RESPONSE_LINK_BASE_URL = os.environ.get(
    'RESPONSE_LINK_BASE_URL', 'https://donor-location-tracker.onrender.com'
).rstrip('/')
RESPONSE_TOKEN_LENGTH = 8
# 0 keeps tokens valid until first use
RESPONSE_TOKEN_TTL_HOURS = int(os.environ.get('RESPONSE_TOKEN_TTL_HOURS', 24))

# Used when the requesting hospital has no coordinates on file
DEFAULT_REFERENCE_POINT = (
    float(os.environ.get('DEFAULT_REFERENCE_LAT', 22.6013)),
    float(os.environ.get('DEFAULT_REFERENCE_LNG', 72.8327)),
)
NEAR_THRESHOLD_KM = float(os.environ.get('NEAR_THRESHOLD_KM', 5))
DEFAULT_MAX_AGE_HOURS = int(os.environ.get('DEFAULT_MAX_AGE_HOURS', 24))


# ---------------------------
# SMS
# ---------------------------
SMS_BACKEND = os.environ.get('SMS_BACKEND', 'donors.sms.ConsoleSMSBackend')
TWILIO_ACCOUNT_SID = os.environ.get('TWILIO_ACCOUNT_SID', '')
TWILIO_AUTH_TOKEN = os.environ.get('TWILIO_AUTH_TOKEN', '')
TWILIO_FROM_NUMBER = os.environ.get('TWILIO_FROM_NUMBER', '')


# ---------------------------
# Celery
# ---------------------------
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_TASK_ALWAYS_EAGER = env_bool('CELERY_TASK_ALWAYS_EAGER', False)
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    'purge-expired-response-tokens': {
        'task': 'donors.tasks.purge_expired_tokens',
        'schedule': crontab(minute=0),
    },
}


# ---------------------------
# Logging
# ---------------------------
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        name: {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False}
        for name in ('algorithms', 'donors', 'hospitals', 'api')
    },
}
