"""
Production settings for the BOM engine project.

SECRET_KEY, ALLOWED_HOSTS and CELERY_BROKER_URL have no defaults here:
a missing value stops the process at startup.
"""

from .base import *

DEBUG = False

# =============================================================================
# SECURITY - Production
# =============================================================================
SECRET_KEY = config('SECRET_KEY')
ALLOWED_HOSTS = config('ALLOWED_HOSTS', cast=Csv())

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_SSL_REDIRECT = config('SECURE_SSL_REDIRECT', default=True, cast=bool)
SECURE_HSTS_SECONDS = config('SECURE_HSTS_SECONDS', default=31536000, cast=int)
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# =============================================================================
# CELERY - Production (real broker, tasks always queued)
# =============================================================================
CELERY_BROKER_URL = config('CELERY_BROKER_URL')
CELERY_TASK_ALWAYS_EAGER = False
CELERY_TASK_ACKS_LATE = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1

# =============================================================================
# LOGGING - Production
# =============================================================================
LOGGING['loggers']['django']['level'] = 'ERROR'
