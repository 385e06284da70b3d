"""
WSGI config for the clipshare project.

Exposes the WSGI callable as a module-level variable named ``application``.
The huey consumer (``python manage.py run_huey``) must run alongside it so
submitted clips get processed and expired clips get reaped.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'clipshare.settings')

application = get_wsgi_application()
