# config/settings/test.py

"""
With these settings, tests run faster.
"""

from .base import *

DEBUG = False

SECRET_KEY = env('SECRET_KEY', default='test-secret-key-not-for-production')

ALLOWED_HOSTS = ['testserver', 'localhost']

# === DATABASE ===

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'ATOMIC_REQUESTS': True,
    }
}

# === PASSWORDS ===

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

# === CACHE / CHANNELS ===

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer',
    },
}

STORAGES['staticfiles'] = {
    'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
}

# === LOGGING ===

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {
            'level': 'WARNING',
            'class': 'logging.StreamHandler',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
}

ORGAOS_TASK_EVENTS_SCOPE = 'project'
