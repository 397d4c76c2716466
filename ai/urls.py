from django.urls import path
from .views import (
    CropPredictionView,
    CropPricesView,
    DailyGuideView,
    FarmChatView,
    InsuranceAdviceView,
)

urlpatterns = [
    path("daily-guide/", DailyGuideView.as_view(), name="ai-daily-guide"),
    path("crop-prediction/", CropPredictionView.as_view(), name="ai-crop-prediction"),
    path("chat/", FarmChatView.as_view(), name="ai-chat"),
    path("insurance-advice/", InsuranceAdviceView.as_view(), name="ai-insurance-advice"),
    path("crop-prices/", CropPricesView.as_view(), name="ai-crop-prices"),
]
