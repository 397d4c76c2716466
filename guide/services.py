from functools import lru_cache

from django.conf import settings

from smart_farm_platform.store import get_store
from .controller import GuideController
from .generator import GeminiInstructionGenerator


@lru_cache(maxsize=1)
def get_controller() -> GuideController:
    # una instancia por proceso: el guard de generación en curso vive aquí
    return GuideController(store=get_store(), generator=GeminiInstructionGenerator())


def error_payload(result):
    return {'error': result.error.message}, result.error.status_code


def generation_payload(outcome) -> dict:
    data = {
        'generated': outcome.generated,
        'reason': outcome.reason,
        'message': outcome.message,
        'date': outcome.day_key,
    }
    if outcome.generated:
        data.update({
            'crop': outcome.crop,
            'day': outcome.day,
            'instructions': outcome.record.to_dict(),
        })
    return data


def auto_trigger_payload(result):
    """
    Contrato del disparador programado:
    - omitido (inactiva / ya generada / en curso): 200 {message}
    - generado: 200 {success, message, crop, day, date}
    - fallo: {error} con el status del error
    """
    if not result.ok:
        return error_payload(result)
    outcome = result.value
    if not outcome.generated:
        return {'message': outcome.message}, 200
    return {
        'success': True,
        'message': outcome.message,
        'crop': outcome.crop,
        'day': outcome.day,
        'date': outcome.day_key,
    }, 200


def run_auto_daily_guide(controller: GuideController = None):
    controller = controller or get_controller()
    result = controller.maybe_generate_today(language=settings.GUIDE_DEFAULT_LANGUAGE)
    return auto_trigger_payload(result)
