import json
import re

FENCED_JSON = re.compile(r"```(?:json)?\s*\n([\s\S]*?)\n?```")
BRACES = re.compile(r"\{[\s\S]*\}")

FALLBACK_CROP = 'Various Suitable Crops'
FALLBACK_RECOMMENDATIONS = 'Consult with local agricultural experts for specific recommendations.'


def parse_crop_prediction(text: str) -> dict:
    """
    Extrae {cropName, reason, recommendations} de la respuesta de la IA.
    Acepta JSON dentro de un bloque ```json, el primer objeto {...} del texto,
    o el texto completo. Si nada parsea devuelve un registro de respaldo.
    """
    text = text or ''
    fenced = FENCED_JSON.search(text)
    if fenced:
        candidate = fenced.group(1)
    else:
        braces = BRACES.search(text)
        candidate = braces.group(0) if braces else text
    try:
        data = json.loads(candidate)
    except (ValueError, TypeError):
        data = None
    if not isinstance(data, dict) or not data.get('cropName'):
        return {
            'cropName': FALLBACK_CROP,
            'reason': text[:200],
            'recommendations': FALLBACK_RECOMMENDATIONS,
        }
    recommendations = data.get('recommendations', '')
    if isinstance(recommendations, list):
        recommendations = '\n'.join(str(r) for r in recommendations)
    return {
        'cropName': str(data['cropName']),
        'reason': str(data.get('reason', '')),
        'recommendations': str(recommendations),
    }
