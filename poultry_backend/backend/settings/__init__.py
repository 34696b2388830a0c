# backend/settings/__init__.py
"""
Settings package. Select a module with DJANGO_SETTINGS_MODULE:
- backend.settings.dev   (local development, tests)
- backend.settings.prod  (PostgreSQL only)
"""
