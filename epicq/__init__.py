"""Django project package for the EPIC-Q portal (settings, URLs, ASGI/WSGI entry points)."""
