import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class FarmError(Exception):
    """
    Error base de la plataforma. Cada subclase fija su `kind` y el status HTTP
    con el que se reporta en la frontera (vista, tarea o comando).
    """
    kind = 'error'
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message=None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    def default_message(self):
        return 'Error interno'

    def as_dict(self):
        return {'error': self.message, 'kind': self.kind}


class ValidationError(FarmError):
    kind = 'validation'
    status_code = status.HTTP_400_BAD_REQUEST

    def default_message(self):
        return 'Datos de entrada inválidos'


class ConfigError(FarmError):
    kind = 'config'

    def default_message(self):
        return 'Servicio no configurado'


class UpstreamError(FarmError):
    kind = 'upstream'

    def default_message(self):
        return 'Fallo en el servicio externo'


class ParseError(FarmError):
    kind = 'parse'

    def default_message(self):
        return 'Respuesta con formato inesperado'


def farm_exception_handler(exc, context):
    if isinstance(exc, FarmError):
        view = context.get('view')
        logger.warning("%s en %s: %s", exc.kind, type(view).__name__ if view else '-', exc.message)
        return Response({'error': exc.message}, status=exc.status_code)
    return exception_handler(exc, context)
