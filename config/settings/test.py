"""Test settings for WedPlan project.

File-backed SQLite with immediate write transactions, fast password hashing
and eager Celery tasks. Writers queue on the database lock, so the threaded
concurrency tests run here as well as on PostgreSQL (set DB_ENGINE/DB_NAME).
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

if get_env('DB_ENGINE') is None:  # noqa: F405
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'test-db.sqlite3',  # noqa: F405
            'OPTIONS': {
                'transaction_mode': 'IMMEDIATE',
                'timeout': 20,
            },
            'TEST': {
                'NAME': str(BASE_DIR / 'test-db.sqlite3'),  # noqa: F405
            },
        }
    }

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

LOGGING['loggers']['apps']['level'] = 'WARNING'  # noqa: F405
LOGGING['loggers']['shared']['level'] = 'WARNING'  # noqa: F405
