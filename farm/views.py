import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, permissions
from drf_spectacular.utils import extend_schema

from guide.services import get_controller
from guide.state import SensorSnapshot
from smart_farm_platform.store import get_store
from .serializers import FarmControlsSerializer, SensorSnapshotSerializer
from .services import read_controls, read_sensors, update_controls, write_sensors

logger = logging.getLogger(__name__)


@extend_schema(tags=['Granja'])
class SensorsView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = SensorSnapshotSerializer

    @extend_schema(summary='Lectura actual de sensores', responses={200: SensorSnapshotSerializer})
    def get(self, request):
        return Response(read_sensors(get_store()).to_dict(), status=status.HTTP_200_OK)

    @extend_schema(
        summary='Publicar lectura de sensores',
        description=(
            "Escribe `SMART_FARM/sensors` (lo usa el nodo de campo) y evalúa la generación "
            "automática de la guía del día."
        ),
        request=SensorSnapshotSerializer,
        responses={200: SensorSnapshotSerializer},
    )
    def post(self, request):
        s = self.serializer_class(data=request.data)
        if not s.is_valid():
            return Response({"error": "Lectura de sensores inválida"}, status=status.HTTP_400_BAD_REQUEST)
        snapshot = write_sensors(get_store(), SensorSnapshot.from_dict(s.validated_data))

        result = get_controller().observe_tick(sensors=snapshot)
        if not result.ok:
            # la lectura ya quedó guardada; el fallo de la guía no invalida la petición
            logger.warning("Tick tras lectura de sensores sin generar: %s", result.error.message)
        return Response(snapshot.to_dict(), status=status.HTTP_200_OK)


@extend_schema(tags=['Granja'])
class ControlsView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = FarmControlsSerializer

    @extend_schema(summary='Controles de la granja', responses={200: FarmControlsSerializer})
    def get(self, request):
        return Response(read_controls(get_store()), status=status.HTTP_200_OK)

    @extend_schema(
        summary='Actualizar controles',
        description="Aplica los campos enviados. Activar `autoMode` apaga `pump` y viceversa.",
        request=FarmControlsSerializer,
        responses={200: FarmControlsSerializer},
    )
    def patch(self, request):
        s = self.serializer_class(data=request.data)
        if not s.is_valid():
            return Response({"error": "Failed to update control", "detail": s.errors}, status=status.HTTP_400_BAD_REQUEST)
        if not s.validated_data:
            return Response({"error": "Sin cambios para aplicar"}, status=status.HTTP_400_BAD_REQUEST)
        controls = update_controls(get_store(), dict(s.validated_data))
        return Response(controls, status=status.HTTP_200_OK)
