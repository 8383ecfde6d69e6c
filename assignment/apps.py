from django.apps import AppConfig


class AssignmentConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'assignment'
    verbose_name = 'Assignments & Discharges'
