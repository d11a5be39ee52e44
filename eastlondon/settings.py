"""
Django settings for the East London community project.
Production-ready for Koyeb + Supabase (database, auth and storage)
"""

import os
import dj_database_url
from pathlib import Path

# Build paths
BASE_DIR = Path(__file__).resolve().parent.parent

# ==================== SECURITY ====================
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-only-1x7@m9q!eastlondon-community-key$3v#k2p8z')
DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'

ALLOWED_HOSTS = ['localhost', '127.0.0.1', 'testserver']
if os.getenv('ALLOWED_HOSTS'):
    ALLOWED_HOSTS.extend(os.getenv('ALLOWED_HOSTS').split(','))
elif not DEBUG:
    ALLOWED_HOSTS.append('.koyeb.app')

CSRF_TRUSTED_ORIGINS = []
if os.getenv('CSRF_TRUSTED_ORIGINS'):
    CSRF_TRUSTED_ORIGINS.extend(os.getenv('CSRF_TRUSTED_ORIGINS').split(','))
elif not DEBUG:
    CSRF_TRUSTED_ORIGINS = ['https://*.koyeb.app']

# ==================== APPLICATIONS ====================
# Identity lives in the hosted backend, so django.contrib.auth is not installed.
INSTALLED_APPS = [
    'community.apps.CommunityConfig',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

# ==================== MIDDLEWARE ====================
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'community.middleware.LocaleAuthMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'community.middleware.TimezoneMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

# ==================== TEMPLATES ====================
ROOT_URLCONF = 'eastlondon.urls'
WSGI_APPLICATION = 'eastlondon.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
                'community.context_processors.community',
                'community.context_processors.unread_counts',
            ],
        },
    },
]

# ==================== DATABASE ====================
# Only Django's own session table lives here; community data is in the
# hosted backend and reached through the Supabase SDK.
DATABASE_URL = os.getenv('DATABASE_URL', '')

if DATABASE_URL and 'postgres' in DATABASE_URL:
    DATABASES = {
        'default': dj_database_url.config(
            default=DATABASE_URL,
            conn_max_age=600,
            conn_health_checks=True,
            ssl_require=True,
        )
    }
else:
    # Fallback to SQLite for development
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

# ==================== HOSTED BACKEND (SUPABASE) ====================
SUPABASE_URL = os.getenv('SUPABASE_URL', '')
SUPABASE_ANON_KEY = os.getenv('SUPABASE_ANON_KEY', '')
SUPABASE_CLIENT_INFO = os.getenv('SUPABASE_CLIENT_INFO', 'eastlondon-community')

# Buckets
SOCIAL_BUCKET = 'socials'
PROFILE_IMAGE_BUCKET = 'profile-images'

# ==================== INTERNATIONALIZATION ====================
LANGUAGE_CODE = 'en'
LANGUAGES = [
    ('en', 'English'),
    ('ps', 'Pashto'),
]
TIME_ZONE = 'UTC'
DISPLAY_TIME_ZONE = os.getenv('DISPLAY_TIME_ZONE', 'Europe/London')
USE_I18N = True
USE_TZ = True

# Translation dictionaries, one common.json per locale
COMMUNITY_LOCALE_DIR = BASE_DIR / 'community' / 'locales'

# ==================== ROUTE GATING ====================
COMMUNITY_EXEMPT_PREFIXES = ('/static', '/media', '/api')
COMMUNITY_PROTECTED_PATHS = (
    '/members',
    '/member/',
    '/payments',
    '/reports',
    '/events',
    '/gallery',
    '/profile',
    '/social',
    '/messages',
    '/notifications',
)
COMMUNITY_AUTH_ONLY_PATHS = ('/login', '/register')
COMMUNITY_CACHE_CONTROL_MAX_AGE = int(os.getenv('COMMUNITY_CACHE_CONTROL_MAX_AGE', 60))
COMMUNITY_PAGE_SIZE = 10

# ==================== STATIC FILES ====================
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage',
    },
}

# ==================== FILE UPLOAD ====================
DATA_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024  # 10MB
FILE_UPLOAD_MAX_MEMORY_SIZE = 5 * 1024 * 1024   # 5MB
AVATAR_MAX_UPLOAD_SIZE = 5 * 1024 * 1024

# ==================== SECURITY HEADERS ====================
if not DEBUG:
    SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
    SECURE_SSL_REDIRECT = os.getenv('SECURE_SSL_REDIRECT', 'True') == 'True'
    SECURE_HSTS_SECONDS = 31536000  # 1 year
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'
    SECURE_REFERRER_POLICY = 'same-origin'

# ==================== LOGGING ====================
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose' if not DEBUG else 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO' if DEBUG else 'WARNING',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'community': {
            'handlers': ['console'],
            'level': os.getenv('COMMUNITY_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
        'httpx': {
            'level': 'WARNING',
            'handlers': ['console'],
            'propagate': False,
        },
    },
}

# ==================== MISC ====================
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Session settings
SESSION_ENGINE = 'django.contrib.sessions.backends.db'
SESSION_COOKIE_AGE = 1209600  # 2 weeks in seconds
MESSAGE_STORAGE = 'django.contrib.messages.storage.session.SessionStorage'

# File type fixes
import mimetypes
mimetypes.add_type('image/webp', '.webp')
mimetypes.add_type('application/javascript', '.js')
