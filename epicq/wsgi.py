"""
WSGI config for the EPIC-Q portal project.

Plain HTTP deployments use this ``application``; WebSocket support needs the
ASGI entry point in ``epicq.asgi``.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

# Set the default settings module for the 'django' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'epicq.settings')

# Obtain the WSGI application for use by the server
application = get_wsgi_application()