"""
WSGI config for the medrecords project.

It exposes the WSGI callable as a module-level variable named ``application``.
WebSocket traffic needs the ASGI entrypoint in ``medrecords.asgi`` instead.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'medrecords.settings')

application = get_wsgi_application()
