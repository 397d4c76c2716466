from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, permissions
from drf_spectacular.utils import extend_schema, OpenApiExample

from smart_farm_platform.exceptions import FarmError
from .serializers import WeatherRequestSerializer
from .services import OpenWeatherMapClient


@extend_schema(
    tags=['Clima'],
    summary='Clima actual y pronóstico de 5 días',
    description="Body: `{city}` o `{lat, lon}`. Temperaturas en °C redondeadas y viento en km/h.",
    request=WeatherRequestSerializer,
    responses={
        200: OpenApiExample('Respuesta', value={
            "current": {"temp": 31, "feels_like": 34, "humidity": 60, "wind_speed": 12,
                        "description": "scattered clouds", "icon": "03d", "city": "Pune", "country": "IN"},
            "forecast": [{"date": "2025-06-02", "temp": 30, "temp_min": 29, "temp_max": 31,
                          "humidity": 58, "wind_speed": 14, "description": "light rain", "icon": "10d"}],
        }),
        400: OpenApiExample('Error', value={"error": "Either city name or coordinates required"}),
    },
)
class WeatherView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = WeatherRequestSerializer

    def post(self, request):
        s = self.serializer_class(data=request.data)
        if not s.is_valid():
            return Response({"error": "Either city name or coordinates required"}, status=status.HTTP_400_BAD_REQUEST)
        data = s.validated_data
        try:
            payload = OpenWeatherMapClient().current_and_forecast(
                city=data['city'] or None, lat=data['lat'], lon=data['lon'],
            )
        except FarmError as e:
            return Response({"error": e.message}, status=e.status_code)
        return Response(payload, status=status.HTTP_200_OK)
