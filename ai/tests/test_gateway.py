from unittest.mock import MagicMock, patch

import pytest
from django.urls import reverse


def _response(content="Riega por la tarde", status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = "err"
    resp.json.return_value = {"choices": [{"message": {"content": content}}]}
    return resp


@pytest.fixture
def gateway_key(settings):
    settings.AI_GATEWAY_API_KEY = "gw-key"
    settings.AI_GATEWAY_URL = "https://gateway.test/v1/chat/completions"


def test_chat_builds_system_prompt(api_client, gateway_key):
    body = {
        "messages": [
            {"role": "user", "content": "hola"},
            {"role": "assistant", "content": "¿en qué ayudo?"},
            {"role": "user", "content": "¿riego hoy?"},
        ],
        "sensorData": {"temperature": 31, "soilMoisture": 20},
        "predictedCrop": "Cotton",
        "language": "hi",
    }
    with patch("ai.services.gateway.requests.post", return_value=_response()) as post:
        resp = api_client.post(reverse("ai-chat"), body, format="json")

    assert resp.status_code == 200
    assert resp.data == {"response": "Riega por la tarde"}
    kwargs = post.call_args[1]
    assert kwargs["headers"]["Authorization"] == "Bearer gw-key"
    messages = kwargs["json"]["messages"]
    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[1]["content"] == "¿riego hoy?"
    assert "Always respond in Hindi language." in messages[0]["content"]
    assert "AI Predicted Crop: Cotton" in messages[0]["content"]
    assert "- Temperature: 31°C" in messages[0]["content"]


def test_chat_empty_reply_uses_fallback(api_client, gateway_key):
    with patch("ai.services.gateway.requests.post", return_value=_response(content=None)):
        resp = api_client.post(reverse("ai-chat"), {"messages": [{"role": "user", "content": "?"}]}, format="json")

    assert resp.data == {"response": "Sorry, I could not generate a response."}


def test_chat_requires_messages(api_client):
    resp = api_client.post(reverse("ai-chat"), {"messages": []}, format="json")

    assert resp.status_code == 400


def test_chat_without_key(api_client, settings):
    settings.AI_GATEWAY_API_KEY = ""
    resp = api_client.post(reverse("ai-chat"), {"messages": [{"role": "user", "content": "?"}]}, format="json")

    assert resp.status_code == 500
    assert resp.data == {"error": "AI_GATEWAY_API_KEY no configurada en entorno."}


def test_gateway_error_status(api_client, gateway_key):
    with patch("ai.services.gateway.requests.post", return_value=_response(status_code=429)):
        resp = api_client.post(reverse("ai-chat"), {"messages": [{"role": "user", "content": "?"}]}, format="json")

    assert resp.status_code == 500
    assert resp.data == {"error": "AI gateway error: 429"}


def test_insurance_advice(api_client, gateway_key):
    body = {"cropType": "wheat", "location": "Punjab", "season": "Rabi", "language": "mr"}
    with patch("ai.services.gateway.requests.post", return_value=_response("1. PMFBY")) as post:
        resp = api_client.post(reverse("ai-insurance-advice"), body, format="json")

    assert resp.data == {"advice": "1. PMFBY"}
    prompt = post.call_args[1]["json"]["messages"][0]["content"]
    assert "Season: Rabi" in prompt
    assert "in Marathi language" in prompt


def test_crop_prices(api_client, gateway_key):
    with patch("ai.services.gateway.requests.post", return_value=_response("₹2,100/quintal")):
        resp = api_client.post(reverse("ai-crop-prices"), {"cropName": "wheat", "location": "Pune"}, format="json")

    assert resp.data == {"priceInfo": "₹2,100/quintal"}


def test_crop_prices_requires_location(api_client):
    resp = api_client.post(reverse("ai-crop-prices"), {"cropName": "wheat"}, format="json")

    assert resp.status_code == 400
    assert resp.data == {"error": "Campo inválido o requerido: location"}
