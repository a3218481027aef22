"""
WSGI config for _eprofos project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', '_eprofos.settings')

application = get_wsgi_application()
