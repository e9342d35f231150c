"""
Bakeplan app configuration.
"""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class BakeplanConfig(AppConfig):
    """Bakeplan application configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "bakeplan"
    verbose_name = _("Production")

    def ready(self):
        """Drop cached repository backends so settings overrides apply."""
        from bakeplan.conf import reset_repositories

        reset_repositories()
