# Duración total estimada del ciclo por cultivo (días)
CROP_DURATIONS = {
    'rice': 120,
    'wheat': 120,
    'corn': 90,
    'tomato': 80,
    'potato': 90,
    'cotton': 150,
    'sugarcane': 365,
    'beans': 60,
}

DEFAULT_CROP_DURATION = 90


def normalize_crop(crop) -> str:
    return str(crop or '').strip().lower()


def crop_duration(crop) -> int:
    return CROP_DURATIONS.get(normalize_crop(crop), DEFAULT_CROP_DURATION)


def match_crop(name):
    """
    Intenta mapear un nombre libre (ej. la predicción de la IA, "Rice (Paddy)")
    a un cultivo conocido. Devuelve None si no hay coincidencia.
    """
    text = normalize_crop(name)
    if not text:
        return None
    if text in CROP_DURATIONS:
        return text
    for crop in CROP_DURATIONS:
        if crop in text.replace('-', ' ').split() or text.startswith(crop):
            return crop
    return None


def crop_options():
    return [{'value': crop, 'duration': days} for crop, days in CROP_DURATIONS.items()]
