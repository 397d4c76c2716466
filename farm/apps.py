from django.apps import AppConfig


class FarmConfig(AppConfig):
    name = 'farm'
    verbose_name = 'Sensores y controles de la granja'
