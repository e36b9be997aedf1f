"""Treatment plans app configuration."""
from django.apps import AppConfig


class TreatmentPlansConfig(AppConfig):
    """Treatment plans, phases and items."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.treatment_plans'
    verbose_name = 'Treatment Plans'
