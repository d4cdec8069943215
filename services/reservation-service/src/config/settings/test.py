"""
Test Settings

Settings for running the test suite.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

JWT_SETTINGS = {
    **JWT_SETTINGS,  # noqa: F405
    'ALGORITHM': 'HS256',
    'SIGNING_KEY': 'test-jwt-secret-key-with-enough-length',
    'VERIFYING_KEY': 'test-jwt-secret-key-with-enough-length',
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {'json': {'()': 'pythonjsonlogger.json.JsonFormatter'}},
    'handlers': {'console': {'class': 'logging.StreamHandler', 'formatter': 'json'}},
    'root': {'handlers': ['console'], 'level': 'WARNING'},
}
