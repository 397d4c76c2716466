"""
Controlador de la guía diaria de cultivo.

Estados: Idle (guide.active = False) y Active. Transiciones:
- start_guide(crop): Idle -> Active. Escribe startDate = hoy, farmerCrop y
  cropDuration sin tocar `guide/dailyInstructions` (salvo que se pida vaciar
  el historial) y genera las instrucciones de hoy.
- stop_guide(): Active -> Idle. Solo escribe `guide/active = False`; el
  historial de instrucciones se conserva.
- observe_tick() / maybe_generate_today(): regla automática única. Genera solo
  si la guía está activa, hoy no tiene registro y no hay otra generación de hoy
  en curso. La usan el dashboard (suscripción / tick) y el disparador programado.
- refresh(): regeneración manual; puede sobrescribir el registro de hoy.

La clave del día es la fecha local (settings.TIME_ZONE) en formato YYYY-MM-DD.
El registro del día se escribe en `guide/dailyInstructions/{día}`: escribir dos
veces la misma clave sobrescribe (last writer wins), nunca duplica.

Ningún método deja escapar FarmError: todos devuelven Result (Ok / Err).
"""
import logging
import threading
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Callable, Optional

from django.conf import settings
from django.utils import timezone

from smart_farm_platform.exceptions import FarmError, ValidationError
from .crops import crop_duration, normalize_crop
from .state import (
    ACTIVE_PATH,
    GUIDE_PATH,
    SENSORS_PATH,
    GuideState,
    InstructionRecord,
    SensorSnapshot,
    day_key,
    days_since_planting,
    instructions_path,
    progress_percentage,
)

logger = logging.getLogger(__name__)

GENERATED = 'generated'
INACTIVE = 'inactive'
ALREADY_GENERATED = 'already_generated'
IN_FLIGHT = 'in_flight'

OUTCOME_MESSAGES = {
    GENERATED: 'Daily instructions generated and stored successfully',
    INACTIVE: 'No active guide to generate instructions for',
    ALREADY_GENERATED: 'Instructions already generated for today',
    IN_FLIGHT: 'Instructions for today are already being generated',
}


@dataclass(frozen=True)
class Result:
    value: Any = None
    error: Optional[FarmError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def Ok(value=None) -> Result:
    return Result(value=value)


def Err(error: FarmError) -> Result:
    return Result(error=error)


@dataclass(frozen=True)
class GenerationOutcome:
    generated: bool
    reason: str
    day_key: str
    day: Optional[int] = None
    crop: Optional[str] = None
    record: Optional[InstructionRecord] = None

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.reason]


@dataclass(frozen=True)
class StartOutcome:
    state: GuideState
    generation: Result


@dataclass(frozen=True)
class GuideProgress:
    today: str
    days_since_planting: int
    progress_percentage: float
    crop_duration_days: Optional[int]
    has_today_instructions: bool


class GuideController:

    def __init__(self, store, generator, clock: Callable[[], Any] = None,
                 default_language: str = None, keep_history_on_start: bool = None):
        self.store = store
        self.generator = generator
        self._clock = clock or timezone.localtime
        self.default_language = default_language or settings.GUIDE_DEFAULT_LANGUAGE
        if keep_history_on_start is None:
            keep_history_on_start = settings.GUIDE_KEEP_HISTORY_ON_START
        self.keep_history_on_start = keep_history_on_start
        self._lock = threading.Lock()
        self._in_flight: set[str] = set()
        self._rerun: set[str] = set()

    # --- lectura ---

    def today(self) -> date:
        now = self._clock()
        return now.date() if isinstance(now, datetime) else now

    def today_key(self) -> str:
        return day_key(self.today())

    def load_state(self) -> GuideState:
        return GuideState.from_dict(self.store.get(GUIDE_PATH))

    def read_sensors(self) -> SensorSnapshot:
        try:
            return SensorSnapshot.from_dict(self.store.get(SENSORS_PATH))
        except FarmError as exc:
            # sin lectura de sensores se genera igual, con los campos en N/A
            logger.warning("No se pudo leer %s: %s", SENSORS_PATH, exc.message)
            return SensorSnapshot()

    def progress(self, state: GuideState = None) -> GuideProgress:
        if state is None:
            state = self.load_state()
        today = self.today()
        key = day_key(today)
        days = days_since_planting(state.start_date, today)
        return GuideProgress(
            today=key,
            days_since_planting=days,
            progress_percentage=progress_percentage(days, state.crop_duration_days),
            crop_duration_days=state.crop_duration_days,
            has_today_instructions=key in state.daily_instructions,
        )

    def is_generating(self, key: str = None) -> bool:
        with self._lock:
            return (key or self.today_key()) in self._in_flight

    # --- guard de generación en curso (por día) ---

    def _claim(self, key) -> bool:
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def _claim_or_defer(self, key) -> bool:
        """Reclama el día o, si está ocupado, pide a quien lo tiene que repita la evaluación al soltarlo."""
        with self._lock:
            if key in self._in_flight:
                self._rerun.add(key)
                return False
            self._in_flight.add(key)
            return True

    def _release(self, key) -> bool:
        with self._lock:
            self._in_flight.discard(key)
            if key in self._rerun:
                self._rerun.discard(key)
                return True
            return False

    # --- transiciones ---

    def start_guide(self, crop, language: str = None, sensors: SensorSnapshot = None) -> Result:
        crop = normalize_crop(crop)
        if not crop:
            return Err(ValidationError('Please select a crop first'))
        try:
            current = self.load_state()
        except FarmError as exc:
            logger.error("No se pudo leer la guía al iniciar: %s", exc.message)
            return Err(exc)
        if current.active:
            return Err(ValidationError(f"Ya hay una guía activa ({current.crop}); deténla antes de iniciar otra"))

        today = self.today()
        key = day_key(today)
        history = current.daily_instructions if self.keep_history_on_start else {}
        state = GuideState(
            active=True,
            start_date=today,
            crop=crop,
            crop_duration_days=crop_duration(crop),
            daily_instructions=dict(history),
        )
        # se reclama el día antes de escribir: los ticks que dispare la escritura ven la generación en curso
        claimed = self._claim(key)
        try:
            try:
                self._write_start(state)
            except FarmError as exc:
                logger.error("No se pudo iniciar la guía: %s", exc.message)
                return Err(exc)
            logger.info("Guía iniciada: crop=%s duration=%s start=%s", crop, state.crop_duration_days, key)
            if not claimed:
                # el día lo tiene otra evaluación que pudo leer la guía inactiva: se le pide repetirla
                claimed = self._claim_or_defer(key)
            if claimed:
                generation = self._generate(state, today, language, sensors)
            else:
                generation = Ok(GenerationOutcome(False, IN_FLIGHT, key, crop=crop))
        finally:
            if claimed:
                self._release(key)

        if generation.ok and generation.value.generated:
            state = state.with_record(key, generation.value.record)
        return Ok(StartOutcome(state=state, generation=generation))

    def stop_guide(self) -> Result:
        try:
            state = self.load_state()
            if state.active:
                self.store.set(ACTIVE_PATH, False)
                logger.info("Guía detenida: crop=%s", state.crop)
        except FarmError as exc:
            logger.error("No se pudo detener la guía: %s", exc.message)
            return Err(exc)
        return Ok(replace(state, active=False))

    def maybe_generate_today(self, language: str = None, sensors: SensorSnapshot = None) -> Result:
        return self._generate_today(language, sensors, force=False)

    def observe_tick(self, language: str = None, sensors: SensorSnapshot = None) -> Result:
        return self.maybe_generate_today(language, sensors)

    def refresh(self, language: str = None, sensors: SensorSnapshot = None) -> Result:
        return self._generate_today(language, sensors, force=True)

    def _generate_today(self, language, sensors, force) -> Result:
        today = self.today()
        key = day_key(today)
        if not self._claim(key):
            return Ok(GenerationOutcome(False, IN_FLIGHT, key))
        try:
            result = self._evaluate_today(today, key, language, sensors, force)
        finally:
            rerun = self._release(key)
        if rerun:
            # una guía iniciada mientras se evaluaba: se vuelve a aplicar la regla automática
            logger.info("Reevaluando la guía del %s tras un inicio concurrente", key)
            return self._generate_today(language, sensors, force=False)
        return result

    def _evaluate_today(self, today, key, language, sensors, force) -> Result:
        try:
            state = self.load_state()
        except FarmError as exc:
            logger.error("No se pudo leer la guía: %s", exc.message)
            return Err(exc)
        if not state.active:
            if force:
                return Err(ValidationError('No hay una guía activa para refrescar'))
            return Ok(GenerationOutcome(False, INACTIVE, key))
        if not force and key in state.daily_instructions:
            return Ok(GenerationOutcome(False, ALREADY_GENERATED, key, crop=state.crop))
        return self._generate(state, today, language, sensors)

    def _write_start(self, state: GuideState):
        fields = {
            'startDate': day_key(state.start_date),
            'farmerCrop': state.crop,
            'cropDuration': state.crop_duration_days,
            'active': True,
        }
        if self.keep_history_on_start:
            # el historial no se reescribe: los registros se conservan tal cual están en el árbol
            self.store.update(GUIDE_PATH, fields)
        else:
            self.store.set(GUIDE_PATH, {**fields, 'dailyInstructions': {}})

    def _generate(self, state: GuideState, today: date, language, sensors) -> Result:
        key = day_key(today)
        language = language or self.default_language
        days = days_since_planting(state.start_date, today)
        if sensors is None:
            sensors = self.read_sensors()
        try:
            record = self.generator.generate(state.crop, sensors, days, state.crop_duration_days, language)
            self.store.set(instructions_path(key), record.to_dict())
        except FarmError as exc:
            logger.error("No se pudo generar la guía del %s (%s): %s", key, exc.kind, exc.message)
            return Err(exc)
        logger.info("Instrucciones del %s guardadas: crop=%s day=%s", key, state.crop, days)
        return Ok(GenerationOutcome(True, GENERATED, key, day=days, crop=state.crop, record=record))

    # --- ruta reactiva ---

    def attach(self, language: str = None) -> Callable[[], None]:
        """
        Suscribe la regla automática a `guide` y a `SMART_FARM/sensors`.
        Cada notificación evalúa una sola vez maybe_generate_today.
        """
        def on_change(_value):
            result = self.observe_tick(language)
            if not result.ok:
                logger.warning("Tick sin generar: %s", result.error.message)

        unsubscribers = [
            self.store.subscribe(GUIDE_PATH, on_change),
            self.store.subscribe(SENSORS_PATH, on_change),
        ]

        def detach():
            for unsubscribe in unsubscribers:
                unsubscribe()
        return detach
