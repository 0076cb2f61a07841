"""
Django settings for the Allocman test suite.

SQLite by default. Set ALLOCMAN_TEST_DB=postgres to run against PostgreSQL
(needed for the row-locking concurrency tests):

    ALLOCMAN_TEST_DB=postgres POSTGRES_DB=allocman pytest
"""

import os

SECRET_KEY = 'allocman-tests'

DEBUG = False

USE_TZ = True
TIME_ZONE = 'America/Sao_Paulo'
LANGUAGE_CODE = 'pt-br'

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'django.contrib.admin',
    'django.contrib.sessions',
    'django.contrib.messages',
    'allocman',
]

if os.environ.get('ALLOCMAN_TEST_DB') == 'postgres':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ.get('POSTGRES_DB', 'allocman'),
            'USER': os.environ.get('POSTGRES_USER', 'postgres'),
            'PASSWORD': os.environ.get('POSTGRES_PASSWORD', ''),
            'HOST': os.environ.get('POSTGRES_HOST', 'localhost'),
            'PORT': os.environ.get('POSTGRES_PORT', '5432'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
        }
    }

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

ALLOCMAN = {
    'RETRY_BACKOFF_SECONDS': 0,
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {'class': 'logging.NullHandler'},
    },
    'loggers': {
        'allocman': {'handlers': ['null'], 'level': 'DEBUG', 'propagate': True},
    },
}
