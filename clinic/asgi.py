"""
ASGI config for the clinic project.

It exposes the ASGI callable as a module-level variable named ``application``.
Configure settings before importing any Django-dependent modules.
"""
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "clinic.settings")

from django.core.asgi import get_asgi_application  # noqa: E402

application = get_asgi_application()
