"""Development settings for WedPlan project.

This module extends the base settings with development specific
configuration, such as enabling debug, allowing all hosts and logging
at debug level. Do not use these settings in production!
"""

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Plain storage so runserver works without collectstatic
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

LOGGING['loggers']['apps']['level'] = 'DEBUG'  # noqa: F405
LOGGING['handlers']['console']['level'] = 'DEBUG'  # noqa: F405
