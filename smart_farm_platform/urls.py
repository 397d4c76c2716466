from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView
from django.http import JsonResponse


def health_check(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    # API apps
    path('api/guide/', include('guide.urls')),
    path('api/ai/', include('ai.urls')),
    path('api/farm/', include('farm.urls')),
    path('api/weather/', include('weather.urls')),

    # OpenAPI / docs
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    path('healthz/', health_check, name='healthz'),
]
