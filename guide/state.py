"""
Modelo del documento `guide` y de la lectura de sensores.

La forma en el árbol (camelCase) se mantiene compatible con el dashboard:
    guide = {
        "active": bool,
        "startDate": "YYYY-MM-DD",
        "farmerCrop": str,
        "cropDuration": int,
        "dailyInstructions": {"YYYY-MM-DD": {"instructions": str, "generatedAt": ISO8601}},
    }
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

from dateutil.parser import isoparse

GUIDE_PATH = 'guide'
ACTIVE_PATH = 'guide/active'
INSTRUCTIONS_PATH = 'guide/dailyInstructions'
SENSORS_PATH = 'SMART_FARM/sensors'


def day_key(day: date) -> str:
    return day.strftime('%Y-%m-%d')


def instructions_path(key: str) -> str:
    return f"{INSTRUCTIONS_PATH}/{key}"


def _parse_date(value) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value)).date()
    except ValueError:
        return None


def _parse_datetime(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return isoparse(str(value))
    except ValueError:
        return None


def _to_float(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


TRUE_STRINGS = {'1', 'true', 'yes', 'on'}
FALSE_STRINGS = {'0', 'false', 'no', 'off', ''}


def _to_bool(value) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    return None


def _to_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class InstructionRecord:
    text: str
    generated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data) -> Optional["InstructionRecord"]:
        if not isinstance(data, dict):
            return None
        return cls(
            text=str(data.get('instructions') or ''),
            generated_at=_parse_datetime(data.get('generatedAt')),
        )

    def to_dict(self) -> dict:
        return {
            'instructions': self.text,
            'generatedAt': self.generated_at.isoformat() if self.generated_at else None,
        }


@dataclass(frozen=True)
class SensorSnapshot:
    """Lectura puntual de sensores; cualquier campo puede faltar (sensor no cableado)."""
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil_moisture: Optional[float] = None
    ph: Optional[float] = None
    light_intensity: Optional[float] = None
    rain_detected: Optional[bool] = None

    @classmethod
    def from_dict(cls, data) -> "SensorSnapshot":
        if not isinstance(data, dict):
            return cls()
        ph = data.get('pH', data.get('phLevel', data.get('ph')))
        light = data.get('lightIntensity', data.get('light'))
        rain = data.get('rainDetected', data.get('rain'))
        return cls(
            temperature=_to_float(data.get('temperature')),
            humidity=_to_float(data.get('humidity')),
            soil_moisture=_to_float(data.get('soilMoisture')),
            ph=_to_float(ph),
            light_intensity=_to_float(light),
            rain_detected=_to_bool(rain),
        )

    def to_dict(self) -> dict:
        return {
            'temperature': self.temperature,
            'humidity': self.humidity,
            'soilMoisture': self.soil_moisture,
            'pH': self.ph,
            'lightIntensity': self.light_intensity,
            'rainDetected': self.rain_detected,
        }


@dataclass(frozen=True)
class GuideState:
    active: bool = False
    start_date: Optional[date] = None
    crop: Optional[str] = None
    crop_duration_days: Optional[int] = None
    daily_instructions: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data) -> "GuideState":
        if not isinstance(data, dict):
            return cls()
        records = {}
        for key, raw in (data.get('dailyInstructions') or {}).items():
            record = InstructionRecord.from_dict(raw)
            if record is not None:
                records[key] = record
        return cls(
            active=bool(data.get('active')),
            start_date=_parse_date(data.get('startDate')),
            crop=data.get('farmerCrop') or None,
            crop_duration_days=_to_int(data.get('cropDuration')),
            daily_instructions=records,
        )

    def to_dict(self) -> dict:
        return {
            'active': self.active,
            'startDate': day_key(self.start_date) if self.start_date else None,
            'farmerCrop': self.crop,
            'cropDuration': self.crop_duration_days,
            'dailyInstructions': {k: r.to_dict() for k, r in self.daily_instructions.items()},
        }

    def is_consistent(self) -> bool:
        if not self.active:
            return True
        return bool(self.start_date and self.crop and self.crop_duration_days)

    def instructions_for(self, key: str) -> Optional[InstructionRecord]:
        return self.daily_instructions.get(key)

    def with_record(self, key: str, record: InstructionRecord) -> "GuideState":
        records = dict(self.daily_instructions)
        records[key] = record
        return replace(self, daily_instructions=records)


def days_since_planting(start_date: Optional[date], today: date) -> int:
    if start_date is None:
        return 0
    return max(0, (today - start_date).days)


def progress_percentage(days: int, duration: Optional[int]) -> float:
    if not duration or duration <= 0:
        return 0.0
    return max(0.0, min(100.0, 100.0 * days / duration))
