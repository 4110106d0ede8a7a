# config/wsgi.py

import os
from django.core.wsgi import get_wsgi_application

# Default settings (HTTP only; websockets need config.asgi)
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.production')

application = get_wsgi_application()
