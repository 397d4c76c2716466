import logging

from django.conf import settings
from django.utils import timezone

from ai.prompts import language_name
from ai.services.gemini import GeminiClient
from .state import InstructionRecord, SensorSnapshot

logger = logging.getLogger(__name__)


def _fmt(value, suffix=''):
    return 'N/A' if value is None else f"{value:g}{suffix}"


def build_daily_guide_prompt(crop, sensors: SensorSnapshot, days_since_planting, crop_duration_days, language='en') -> str:
    rain = 'N/A' if sensors.rain_detected is None else ('Yes' if sensors.rain_detected else 'No')
    sensor_context = (
        "Current Sensor Readings:\n"
        f"- Temperature: {_fmt(sensors.temperature, '°C')}\n"
        f"- Humidity: {_fmt(sensors.humidity, '%')}\n"
        f"- Soil Moisture: {_fmt(sensors.soil_moisture, '%')}\n"
        f"- pH Level: {_fmt(sensors.ph)}\n"
        f"- Light Intensity: {_fmt(sensors.light_intensity, ' lux')}\n"
        f"- Rain Detection: {rain}\n"
    )
    growth_context = ''
    if crop_duration_days:
        pct = round(100 * (days_since_planting or 0) / crop_duration_days)
        growth_context = (
            f"Crop Growth Progress: Day {days_since_planting or 0} of {crop_duration_days} days ({pct}% complete)\n"
        )
    return (
        "You are an expert agricultural advisor providing daily farming guidance.\n\n"
        f"{sensor_context}\n"
        f"{growth_context}\n"
        f"Crop: {crop}\n\n"
        f"Provide practical, actionable daily instructions in {language_name(language)} language for this farmer. Include:\n\n"
        "1. **Watering Schedule**: Specific watering instructions based on soil moisture and weather\n"
        "2. **Fertilizer Advice**: Any fertilization needs for today\n"
        "3. **Light/Sun Exposure**: Guidance on light management\n"
        "4. **Alerts**: Any critical alerts or warnings based on sensor readings\n"
        "5. **General Tasks**: Other important tasks for today\n\n"
        "Format your response as clear, numbered sections. Be specific and practical."
    )


class InstructionGenerator:
    def generate(self, crop, sensors, days_since_planting, crop_duration_days, language='en') -> InstructionRecord:
        raise NotImplementedError


class GeminiInstructionGenerator(InstructionGenerator):
    """
    Genera las instrucciones del día con Gemini. El texto se guarda tal cual
    (no se exige JSON). Errores: ConfigError sin API key, UpstreamError si la
    llamada falla, ParseError si la respuesta no trae texto.
    """

    def __init__(self, timeout=None):
        self.timeout = timeout or settings.GUIDE_GENERATION_TIMEOUT

    def generate(self, crop, sensors, days_since_planting, crop_duration_days, language='en'):
        # el cliente se construye por llamada: la falta de credencial se reporta como error de la petición
        client = GeminiClient(timeout=self.timeout)
        logger.info("Generando guía diaria: crop=%s day=%s/%s", crop, days_since_planting, crop_duration_days)
        prompt = build_daily_guide_prompt(crop, sensors, days_since_planting, crop_duration_days, language)
        text = client.generate(prompt)
        return InstructionRecord(text=text, generated_at=timezone.now())
