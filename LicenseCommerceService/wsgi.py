"""
WSGI config for LicenseCommerceService project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "LicenseCommerceService.settings.prod")

application = get_wsgi_application()
