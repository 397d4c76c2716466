import logging

import requests
from django.conf import settings

from smart_farm_platform.exceptions import ConfigError, ParseError, UpstreamError

logger = logging.getLogger(__name__)

FORECAST_DAYS = 5


def _kmh(speed_ms) -> int:
    return round((speed_ms or 0) * 3.6)


def summarize_current(data: dict) -> dict:
    try:
        return {
            'temp': round(data['main']['temp']),
            'feels_like': round(data['main']['feels_like']),
            'humidity': data['main']['humidity'],
            'wind_speed': _kmh(data['wind']['speed']),
            'description': data['weather'][0]['description'],
            'icon': data['weather'][0]['icon'],
            'city': data.get('name'),
            'country': (data.get('sys') or {}).get('country'),
        }
    except (KeyError, IndexError, TypeError) as exc:
        raise ParseError("Respuesta de clima actual incompleta") from exc


def summarize_forecast(data: dict) -> list[dict]:
    """Una lectura por día (la de las 12:00:00), máximo FORECAST_DAYS días."""
    days = []
    try:
        for item in data.get('list', []):
            if '12:00:00' not in item.get('dt_txt', ''):
                continue
            days.append({
                'date': item['dt_txt'].split(' ')[0],
                'temp': round(item['main']['temp']),
                'temp_min': round(item['main']['temp_min']),
                'temp_max': round(item['main']['temp_max']),
                'humidity': item['main']['humidity'],
                'wind_speed': _kmh(item['wind']['speed']),
                'description': item['weather'][0]['description'],
                'icon': item['weather'][0]['icon'],
            })
            if len(days) == FORECAST_DAYS:
                break
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise ParseError("Respuesta de pronóstico incompleta") from exc
    return days


class OpenWeatherMapClient:

    def __init__(self, api_key: str | None = None, timeout: int = 10):
        self.api_key = api_key or settings.OPENWEATHERMAP_API_KEY
        self.base_url = settings.OPENWEATHERMAP_API_URL.rstrip('/')
        self.timeout = timeout
        if not self.api_key:
            raise ConfigError('Weather service not configured')

    def _get(self, endpoint: str, location: dict) -> dict:
        params = {**location, 'units': 'metric', 'appid': self.api_key}
        try:
            resp = requests.get(f"{self.base_url}/{endpoint}", params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"OpenWeatherMap connection error: {e}") from e
        if resp.status_code != 200:
            logger.error("OpenWeatherMap API error (%s): %s", endpoint, resp.status_code)
            raise UpstreamError('Failed to fetch weather data')
        try:
            return resp.json()
        except ValueError as e:
            raise ParseError(f"Respuesta de OpenWeatherMap ({endpoint}) no es JSON") from e

    def current_and_forecast(self, city: str | None = None, lat=None, lon=None) -> dict:
        if city:
            location = {'q': city}
        elif lat is not None and lon is not None:
            location = {'lat': lat, 'lon': lon}
        else:
            raise ValueError('Either city name or coordinates required')
        current = self._get('weather', location)
        forecast = self._get('forecast', location)
        return {
            'current': summarize_current(current),
            'forecast': summarize_forecast(forecast),
        }
