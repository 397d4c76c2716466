from unittest.mock import MagicMock, patch

import pytest
import requests
from django.urls import reverse

from ai.services.gemini import GeminiClient, extract_text
from guide.generator import GeminiInstructionGenerator, build_daily_guide_prompt
from guide.state import SensorSnapshot
from smart_farm_platform.exceptions import ConfigError, ParseError, UpstreamError


def _gemini_response(text="1. **Watering Schedule**: riega 20 min", status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = "boom"
    resp.json.return_value = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return resp


@pytest.fixture
def gemini_key(settings):
    settings.GEMINI_API_KEY = "test-key"
    settings.GEMINI_MODEL = "gemini-2.0-flash-exp"
    return settings


def test_client_requires_key(settings):
    settings.GEMINI_API_KEY = ""
    with pytest.raises(ConfigError):
        GeminiClient()


def test_client_posts_generate_content(gemini_key):
    with patch("ai.services.gemini.requests.post", return_value=_gemini_response("hola")) as post:
        text = GeminiClient().generate("ping", temperature=0.5, max_output_tokens=512)

    assert text == "hola"
    url = post.call_args[0][0]
    kwargs = post.call_args[1]
    assert url.endswith("/models/gemini-2.0-flash-exp:generateContent")
    assert kwargs["params"] == {"key": "test-key"}
    assert kwargs["json"]["generationConfig"] == {"temperature": 0.5, "maxOutputTokens": 512}


def test_client_non_200_is_upstream(gemini_key):
    with patch("ai.services.gemini.requests.post", return_value=_gemini_response(status_code=503)):
        with pytest.raises(UpstreamError) as exc:
            GeminiClient().generate("ping")
    assert exc.value.message == "Gemini API error: 503"


def test_client_connection_error_is_upstream(gemini_key):
    with patch("ai.services.gemini.requests.post", side_effect=requests.Timeout("lento")):
        with pytest.raises(UpstreamError):
            GeminiClient().generate("ping")


def test_extract_text_without_parts():
    with pytest.raises(ParseError):
        extract_text({"candidates": []})


def test_prompt_includes_progress_and_language():
    prompt = build_daily_guide_prompt(
        'rice', SensorSnapshot(temperature=28.5, soil_moisture=40), 60, 120, 'hi')

    assert "Day 60 of 120 days (50% complete)" in prompt
    assert "- Temperature: 28.5°C" in prompt
    assert "- Humidity: N/A" in prompt
    assert "- Rain Detection: N/A" in prompt
    assert "in Hindi language" in prompt
    assert "Crop: rice" in prompt


def test_prompt_without_duration_omits_progress():
    prompt = build_daily_guide_prompt('quinoa', SensorSnapshot(), 3, None)

    assert "Crop Growth Progress" not in prompt
    assert "in English language" in prompt


def test_generator_without_key_is_config_error(settings):
    settings.GEMINI_API_KEY = ""
    with pytest.raises(ConfigError):
        GeminiInstructionGenerator().generate('rice', SensorSnapshot(), 1, 120)


def test_generator_returns_raw_text(gemini_key):
    with patch("ai.services.gemini.requests.post", return_value=_gemini_response("texto libre, no JSON")):
        record = GeminiInstructionGenerator().generate('rice', SensorSnapshot(), 1, 120)

    assert record.text == "texto libre, no JSON"
    assert record.generated_at is not None


def test_daily_guide_view(api_client, gemini_key):
    body = {"crop": "wheat", "sensorData": {"temperature": 22}, "daysSincePlanting": 10, "cropDuration": 120}
    with patch("ai.services.gemini.requests.post", return_value=_gemini_response("hoy: riego ligero")) as post:
        resp = api_client.post(reverse("ai-daily-guide"), body, format="json")

    assert resp.status_code == 200
    assert resp.data["instructions"] == "hoy: riego ligero"
    assert "generatedAt" in resp.data
    prompt = post.call_args[1]["json"]["contents"][0]["parts"][0]["text"]
    assert "Day 10 of 120 days (8% complete)" in prompt


def test_daily_guide_view_without_key(api_client, settings):
    settings.GEMINI_API_KEY = ""
    resp = api_client.post(reverse("ai-daily-guide"), {"crop": "wheat"}, format="json")

    assert resp.status_code == 500
    assert resp.data == {"error": "GEMINI_API_KEY no configurada en entorno."}


def test_daily_guide_view_requires_crop(api_client):
    resp = api_client.post(reverse("ai-daily-guide"), {}, format="json")

    assert resp.status_code == 400
    assert resp.data == {"error": "Campo inválido o requerido: crop"}
