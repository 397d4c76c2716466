from django.urls import path
from .views import ControlsView, SensorsView

urlpatterns = [
    path('sensors/', SensorsView.as_view(), name='farm-sensors'),
    path('controls/', ControlsView.as_view(), name='farm-controls'),
]
