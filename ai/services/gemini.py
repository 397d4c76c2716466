import logging

import requests
from django.conf import settings

from smart_farm_platform.exceptions import ConfigError, ParseError, UpstreamError

logger = logging.getLogger(__name__)


def extract_text(data: dict) -> str:
    """Texto de la primera parte del primer candidato de generateContent."""
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ParseError("Respuesta de Gemini sin contenido de texto") from exc


class GeminiClient:
    """
    Cliente mínimo de Gemini generateContent.
    Usa el modelo y la URL globales de settings salvo que se indiquen.
    """

    def __init__(self, api_key: str | None = None, model: str | None = None, timeout: int | None = None):
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = settings.GEMINI_API_URL.rstrip('/')
        self.timeout = timeout or settings.AI_TIMEOUT
        if not self.api_key:
            raise ConfigError('GEMINI_API_KEY no configurada en entorno.')

    def generate(self, prompt: str, temperature: float | None = None, max_output_tokens: int | None = None) -> str:
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        generation_config = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if max_output_tokens is not None:
            generation_config["maxOutputTokens"] = max_output_tokens
        if generation_config:
            payload["generationConfig"] = generation_config

        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            resp = requests.post(url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"Gemini API connection error: {e}") from e

        if resp.status_code != 200:
            logger.error("Gemini API error: %s %s", resp.status_code, resp.text[:500])
            raise UpstreamError(f"Gemini API error: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ParseError("Respuesta de Gemini no es JSON") from e
        return extract_text(data)
