"""
Settings for the Nexabu settlement backend.

Everything environment-specific is read through python-decouple, so a
``.env`` file or real environment variables drive a deployment. Money
settings are ``Decimal`` and percentages are whole numbers (18 == 18%).
"""

from pathlib import Path
from datetime import timedelta
from decimal import Decimal
from decouple import config, Csv
import dj_database_url
import sys


BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('SECRET_KEY', default='django-insecure-change-me-in-production')
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())
CSRF_TRUSTED_ORIGINS = config('CSRF_TRUSTED_ORIGINS', default='', cast=Csv())

# Hosting platforms that inject the public hostname
EXTERNAL_HOSTNAME = config('RENDER_EXTERNAL_HOSTNAME', default=None)
if EXTERNAL_HOSTNAME:
    ALLOWED_HOSTS.append(EXTERNAL_HOSTNAME)
    CSRF_TRUSTED_ORIGINS.append(f'https://{EXTERNAL_HOSTNAME}')


# =============================================================================
# APPS
# =============================================================================

DJANGO_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS = [
    'rest_framework',
    'rest_framework_simplejwt',
    'corsheaders',
    'drf_spectacular',
]

NEXABU_APPS = [
    'apps.accounts',
    'apps.catalog',
    'apps.orders',
    'apps.payments',
    'apps.invoices',
    'apps.delivery',
    'apps.analytics',
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + NEXABU_APPS

AUTH_USER_MODEL = 'accounts.User'
ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

# Only the admin renders templates
TEMPLATES = [{
    'BACKEND': 'django.template.backends.django.DjangoTemplates',
    'APP_DIRS': True,
    'OPTIONS': {
        'context_processors': [
            'django.template.context_processors.request',
            'django.contrib.auth.context_processors.auth',
            'django.contrib.messages.context_processors.messages',
        ],
    },
}]


# =============================================================================
# DATA
# =============================================================================

# Postgres in production via DATABASE_URL, SQLite otherwise. Checkout relies
# on row locks, which SQLite serialises at the database level instead.
DATABASES = {
    'default': dj_database_url.config(
        default=config('DATABASE_URL', default=f'sqlite:///{BASE_DIR / "db.sqlite3"}'),
        conn_max_age=config('DB_CONN_MAX_AGE', default=600, cast=int),
    )
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': f'django.contrib.auth.password_validation.{name}'}
    for name in (
        'UserAttributeSimilarityValidator',
        'MinimumLengthValidator',
        'CommonPasswordValidator',
        'NumericPasswordValidator',
    )
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = config('TIME_ZONE', default='Africa/Dar_es_Salaam')
USE_I18N = False
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage'},
}


# =============================================================================
# API
# =============================================================================

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticatedOrReadOnly',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'COERCE_DECIMAL_TO_STRING': True,
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=config('JWT_ACCESS_MINUTES', default=60, cast=int)),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=config('JWT_REFRESH_DAYS', default=7, cast=int)),
    'AUTH_HEADER_TYPES': ('Bearer',),
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'Nexabu Settlement API',
    'DESCRIPTION': 'Multi-vendor checkout, payment confirmation, wallets, invoices and sales reports.',
    'VERSION': '0.3.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'COMPONENT_SPLIT_REQUEST': True,
    'SCHEMA_PATH_PREFIX': r'/api/',
}

# The offline-first storefront is served from its own origin
CORS_ALLOW_ALL_ORIGINS = DEBUG
CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', default='', cast=Csv())

if not DEBUG:
    SECURE_SSL_REDIRECT = config('SECURE_SSL_REDIRECT', default=True, cast=bool)
    SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_HSTS_SECONDS = config('SECURE_HSTS_SECONDS', default=31536000, cast=int)


# =============================================================================
# SETTLEMENT
# =============================================================================

SETTLEMENT_CURRENCY = config('SETTLEMENT_CURRENCY', default='TZS')
SETTLEMENT_TAX_RATE = config('SETTLEMENT_TAX_RATE', default='18', cast=Decimal)
PLATFORM_COMMISSION_RATE = config('PLATFORM_COMMISSION_RATE', default='5', cast=Decimal)
PAYMENT_REFERENCE_MIN_LENGTH = config('PAYMENT_REFERENCE_MIN_LENGTH', default=6, cast=int)

DELIVERY_FEE = {
    'SELF_PICKUP': config('DELIVERY_FEE_SELF_PICKUP', default='0', cast=Decimal),
    'HOME_BASE': config('DELIVERY_FEE_HOME_BASE', default='5000', cast=Decimal),
    'HOME_PER_KM': config('DELIVERY_FEE_HOME_PER_KM', default='500', cast=Decimal),
    'HOME_MAX': config('DELIVERY_FEE_HOME_MAX', default='15000', cast=Decimal),
}

# Push-payment gateway. Without a URL every push falls back to manual entry.
PUSH_GATEWAY_URL = config('PUSH_GATEWAY_URL', default='')
PUSH_GATEWAY_API_KEY = config('PUSH_GATEWAY_API_KEY', default='')
PUSH_GATEWAY_TIMEOUT_SECONDS = config('PUSH_GATEWAY_TIMEOUT_SECONDS', default=15, cast=float)
PUSH_GATEWAY_BACKEND = config(
    'PUSH_GATEWAY_BACKEND',
    default=(
        'apps.payments.gateway.HttpPushGateway' if PUSH_GATEWAY_URL
        else 'apps.payments.gateway.UnavailablePushGateway'
    ),
)

NOTIFICATION_BACKEND = config(
    'NOTIFICATION_BACKEND',
    default='apps.payments.notifications.LogNotificationBackend',
)

INVOICE_DEFAULT_TERMS_DAYS = config('INVOICE_DEFAULT_TERMS_DAYS', default=30, cast=int)

# Sales reports bucket days in this UTC offset (EAT by default)
REPORT_TZ_OFFSET_MINUTES = config('REPORT_TZ_OFFSET_MINUTES', default=180, cast=int)
REPORT_TOP_PRODUCTS = config('REPORT_TOP_PRODUCTS', default=10, cast=int)


# =============================================================================
# LOGGING (loguru, see config/logging.py)
# =============================================================================

LOG_LEVEL = config('LOG_LEVEL', default='INFO')


# =============================================================================
# TESTING
# =============================================================================

if 'pytest' in sys.modules or 'test' in sys.argv:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'test_db.sqlite3',
        }
    }
    PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    STORAGES['staticfiles'] = {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'}
    PUSH_GATEWAY_BACKEND = 'apps.payments.gateway.UnavailablePushGateway'
    NOTIFICATION_BACKEND = 'apps.payments.notifications.LogNotificationBackend'
    SECURE_SSL_REDIRECT = False
