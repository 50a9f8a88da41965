"""
WSGI config for the hasone_button demo site.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "sitio.settings")

application = get_wsgi_application()
