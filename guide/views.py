import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, permissions
from drf_spectacular.utils import extend_schema, OpenApiExample

from .crops import crop_options
from .serializers import (
    GuideStateSerializer,
    LanguageSerializer,
    StartGuideSerializer,
    guide_state_data,
)
from .services import (
    error_payload,
    generation_payload,
    get_controller,
    run_auto_daily_guide,
)

logger = logging.getLogger(__name__)


def _guide_response(controller, state, status_code=status.HTTP_200_OK):
    progress = controller.progress(state)
    data = guide_state_data(state, progress, generating=controller.is_generating(progress.today))
    return Response(data, status=status_code)


@extend_schema(
    tags=['Guía diaria'],
    summary='Estado de la guía',
    description=(
        "Devuelve el documento `guide` con el progreso derivado (días desde la siembra, "
        "porcentaje sobre la duración del cultivo) y las instrucciones de hoy si existen."
    ),
    responses={200: GuideStateSerializer},
)
class GuideView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        controller = get_controller()
        return _guide_response(controller, controller.load_state())


@extend_schema(
    tags=['Guía diaria'],
    summary='Cultivos disponibles',
    responses={200: OpenApiExample('Lista', value=[{"value": "rice", "duration": 120}])},
)
class CropOptionsView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response(crop_options(), status=status.HTTP_200_OK)


@extend_schema(
    tags=['Guía diaria'],
    summary='Iniciar guía',
    description=(
        "Inicia la guía para un cultivo: startDate = hoy, cropDuration según la tabla de cultivos "
        "(90 días si el cultivo no es conocido) y genera las instrucciones del día.\n\n"
        "Si la primera generación falla la guía queda iniciada y el error se informa en `generation`."
    ),
    request=StartGuideSerializer,
    responses={
        201: OpenApiExample(
            'Guía iniciada',
            value={
                "guide": {"active": True, "startDate": "2025-06-01", "farmerCrop": "rice", "cropDuration": 120},
                "generation": {"generated": True, "reason": "generated", "date": "2025-06-01"},
            },
        ),
        400: OpenApiExample('Error', value={"error": "Please select a crop first"}),
    },
)
class StartGuideView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = StartGuideSerializer

    def post(self, request):
        s = self.serializer_class(data=request.data)
        if not s.is_valid():
            return Response({"error": "Datos de inicio inválidos"}, status=status.HTTP_400_BAD_REQUEST)

        controller = get_controller()
        result = controller.start_guide(s.validated_data['crop'], language=s.validated_data['language'])
        if not result.ok:
            body, code = error_payload(result)
            return Response(body, status=code)

        outcome = result.value
        generation = outcome.generation
        progress = controller.progress(outcome.state)
        return Response({
            "guide": guide_state_data(outcome.state, progress),
            "generation": generation_payload(generation.value) if generation.ok else {"error": generation.error.message},
        }, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Guía diaria'], summary='Detener guía', request=None, responses={200: GuideStateSerializer})
class StopGuideView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        controller = get_controller()
        result = controller.stop_guide()
        if not result.ok:
            body, code = error_payload(result)
            return Response(body, status=code)
        return _guide_response(controller, result.value)


class _GenerationView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = LanguageSerializer
    action = None

    def post(self, request):
        s = self.serializer_class(data=request.data)
        # un idioma inválido no bloquea la generación: se usa 'en'
        s.is_valid()
        language = s.validated_data.get('language', 'en')
        result = getattr(get_controller(), self.action)(language=language)
        if not result.ok:
            body, code = error_payload(result)
            return Response(body, status=code)
        return Response(generation_payload(result.value), status=status.HTTP_200_OK)


@extend_schema(
    tags=['Guía diaria'],
    summary='Regenerar instrucciones de hoy',
    description="Regeneración manual: sobrescribe el registro de hoy salvo que ya haya una generación en curso.",
    request=LanguageSerializer,
)
class RefreshGuideView(_GenerationView):
    action = 'refresh'


@extend_schema(
    tags=['Guía diaria'],
    summary='Evaluar generación automática',
    description=(
        "Tick del dashboard (p. ej. tras una actualización de sensores). Genera solo si la guía "
        "está activa y hoy no tiene instrucciones."
    ),
    request=LanguageSerializer,
)
class GuideTickView(_GenerationView):
    action = 'observe_tick'


@extend_schema(
    tags=['Guía diaria'],
    summary='Disparador programado de la guía diaria',
    description=(
        "Mismo criterio que el tick, con idioma fijo por defecto.\n\n"
        "- Omitido: `{message}`\n"
        "- Generado: `{success, message, crop, day, date}`\n"
        "- Error: `{error}` con status 500"
    ),
    request=None,
    responses={
        200: OpenApiExample('Generado', value={"success": True, "crop": "rice", "day": 12, "date": "2025-06-13"}),
        500: OpenApiExample('Error', value={"error": "GEMINI_API_KEY no configurada en entorno."}),
    },
)
class AutoDailyGuideView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        try:
            body, code = run_auto_daily_guide()
        except Exception as e:
            logger.exception("Error en el disparador automático")
            return Response({"error": str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(body, status=code)
