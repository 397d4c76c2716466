from django.urls import path
from .views import (
    AutoDailyGuideView,
    CropOptionsView,
    GuideTickView,
    GuideView,
    RefreshGuideView,
    StartGuideView,
    StopGuideView,
)

urlpatterns = [
    path('', GuideView.as_view(), name='guide'),
    path('crops/', CropOptionsView.as_view(), name='guide-crops'),
    path('start/', StartGuideView.as_view(), name='guide-start'),
    path('stop/', StopGuideView.as_view(), name='guide-stop'),
    path('refresh/', RefreshGuideView.as_view(), name='guide-refresh'),
    path('tick/', GuideTickView.as_view(), name='guide-tick'),
    path('auto/', AutoDailyGuideView.as_view(), name='guide-auto'),
]
