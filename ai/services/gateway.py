import logging

import requests
from django.conf import settings

from smart_farm_platform.exceptions import ConfigError, ParseError, UpstreamError

logger = logging.getLogger(__name__)


class AIGatewayClient:
    """
    Cliente de un gateway compatible con chat/completions (estilo OpenAI).
    messages: list of {role: 'system'|'user'|'assistant', content: '...'}
    """

    def __init__(self, api_key: str | None = None, model: str | None = None, timeout: int | None = None):
        self.api_key = api_key or settings.AI_GATEWAY_API_KEY
        self.model = model or settings.AI_GATEWAY_MODEL
        self.url = settings.AI_GATEWAY_URL
        self.timeout = timeout or settings.AI_TIMEOUT
        if not self.api_key:
            raise ConfigError('AI_GATEWAY_API_KEY no configurada en entorno.')

    def chat(self, messages: list[dict], max_tokens: int = 1024, temperature: float = 0.7) -> str:
        """Devuelve el contenido del primer choice, o '' si el gateway no trae ninguno."""
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            resp = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"AI gateway connection error: {e}") from e

        if resp.status_code != 200:
            logger.error("AI gateway error: %s %s", resp.status_code, resp.text[:500])
            raise UpstreamError(f"AI gateway error: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ParseError("Respuesta del gateway no es JSON") from e
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        return message.get("content") or ''
