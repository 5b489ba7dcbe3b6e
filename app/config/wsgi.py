"""
WSGI config for the chat backend.

WSGI only serves the REST API and admin. The live WebSocket endpoint and the
presence lifespan hooks need the ASGI entry point (config.asgi), so WSGI is a
fallback for running management tooling behind a traditional server.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
