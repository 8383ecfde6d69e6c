import os
import sys
from pathlib import Path

from dispatch_core.env_loader import load_env_from_file, env_bool, env_list

BASE_DIR = Path(__file__).resolve().parent.parent

# Try different possible locations for the env file
for path in (BASE_DIR / 'env_var.env', BASE_DIR / 'dispatch_core' / 'env_var.env'):
    if load_env_from_file(str(path), override=False):
        break

# Determine if we're in test mode
TESTING = 'test' in sys.argv or 'pytest' in sys.modules

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY')
if not SECRET_KEY:
    if not TESTING:
        raise ValueError("DJANGO_SECRET_KEY is required. Set it in the environment or in env_var.env.")
    SECRET_KEY = 'insecure-test-only-secret-key'

DEBUG = env_bool('DJANGO_DEBUG', default=False)
ALLOWED_HOSTS = env_list('DJANGO_ALLOWED_HOSTS', default=['localhost', '127.0.0.1'])

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'django_filters',
    'drf_yasg',
    'accounts',
    'fleet',
    'customers',
    'assignment',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'dispatch_core.urls'
WSGI_APPLICATION = 'dispatch_core.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

# Database: sqlite unless a server engine is configured
DATABASE_ENGINE = os.getenv('DATABASE_ENGINE', 'django.db.backends.sqlite3')
if DATABASE_ENGINE.endswith('sqlite3'):
    DATABASES = {
        'default': {
            'ENGINE': DATABASE_ENGINE,
            'NAME': os.getenv('DATABASE_NAME', str(BASE_DIR / 'db.sqlite3')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': DATABASE_ENGINE,
            'NAME': os.getenv('DATABASE_NAME', 'fuel_dispatch'),
            'USER': os.getenv('DATABASE_USER', ''),
            'PASSWORD': os.getenv('DATABASE_PASSWORD', ''),
            'HOST': os.getenv('DATABASE_HOST', 'localhost'),
            'PORT': os.getenv('DATABASE_PORT', ''),
            'ATOMIC_REQUESTS': False,
        }
    }

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('DJANGO_TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'accounts.authentication.IdentityHeaderAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'accounts.permissions.IsActiveMember',
    ],
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
        'rest_framework.filters.SearchFilter',
        'rest_framework.filters.OrderingFilter',
    ],
    'EXCEPTION_HANDLER': 'dispatch_core.exceptions.api_exception_handler',
    'UNAUTHENTICATED_USER': None,
}

SWAGGER_SETTINGS = {
    'SECURITY_DEFINITIONS': {
        'IdentitySubject': {
            'type': 'apiKey',
            'in': 'header',
            'name': 'X-Identity-Subject',
        }
    },
    'USE_SESSION_AUTH': False,
}

# Identity provider configuration
IDENTITY_SUBJECT_HEADER = 'HTTP_X_IDENTITY_SUBJECT'
IDENTITY_PROVIDER_API_URL = os.getenv('IDENTITY_PROVIDER_API_URL')
IDENTITY_PROVIDER_API_KEY = os.getenv('IDENTITY_PROVIDER_API_KEY')
IDENTITY_ROLE_CACHE_SECONDS = int(os.getenv('IDENTITY_ROLE_CACHE_SECONDS', '300'))

# API request settings
MAX_RETRIES = 3
BACKOFF_FACTOR = 2  # Exponential backoff
RETRY_DELAY_SECONDS = 1

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'fuel-dispatch',
    }
}

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
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
        app: {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        }
        for app in ('accounts', 'fleet', 'customers', 'assignment', 'dispatch_core')
    },
}
