"""
WSGI config for the clinic project.

It exposes the WSGI callable as a module-level variable named ``application``.
The desktop launcher serves this application from a background thread.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

# Set the default settings module for the 'django' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'clinic.settings')

# Obtain the WSGI application for use by the server
application = get_wsgi_application()
