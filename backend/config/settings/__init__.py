"""
Settings package for the BOM engine.

DJANGO_ENV picks the module: 'dev' (default) or 'prod'.
"""

import os

from django.core.exceptions import ImproperlyConfigured

DJANGO_ENV = os.environ.get('DJANGO_ENV', 'dev').strip().lower()

if DJANGO_ENV == 'prod':
    from .prod import *  # noqa: F401,F403
elif DJANGO_ENV == 'dev':
    from .dev import *  # noqa: F401,F403
else:
    raise ImproperlyConfigured(f"Unknown DJANGO_ENV '{DJANGO_ENV}', expected 'dev' or 'prod'")
