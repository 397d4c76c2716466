import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, permissions
from drf_spectacular.utils import extend_schema, OpenApiExample

from guide.crops import match_crop
from guide.generator import GeminiInstructionGenerator
from guide.state import SensorSnapshot
from smart_farm_platform.exceptions import FarmError
from .prompts import (
    chat_system_prompt,
    crop_prediction_prompt,
    crop_prices_prompt,
    insurance_advice_prompt,
)
from .serializers import (
    ChatRequestSerializer,
    CropPredictionRequestSerializer,
    CropPredictionSerializer,
    CropPricesRequestSerializer,
    DailyGuideRequestSerializer,
    DailyGuideResponseSerializer,
    InsuranceAdviceRequestSerializer,
)
from .services import AIGatewayClient, GeminiClient
from .services.predictions import parse_crop_prediction

logger = logging.getLogger(__name__)

ERROR_EXAMPLE = OpenApiExample('Error', value={"error": "GEMINI_API_KEY no configurada en entorno."})


def _invalid(serializer):
    field = next(iter(serializer.errors), 'body')
    return Response({"error": f"Campo inválido o requerido: {field}"}, status=status.HTTP_400_BAD_REQUEST)


def _failed(exc: FarmError):
    return Response({"error": exc.message}, status=exc.status_code)


@extend_schema(
    tags=['IA'],
    summary='Instrucciones diarias (generador)',
    description=(
        "Genera las instrucciones del día para un cultivo a partir de la lectura de sensores "
        "y el progreso del ciclo. El texto es libre (no JSON) y se devuelve tal cual."
    ),
    request=DailyGuideRequestSerializer,
    responses={200: DailyGuideResponseSerializer, 500: ERROR_EXAMPLE},
)
class DailyGuideView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = DailyGuideRequestSerializer

    def post(self, request):
        s = self.serializer_class(data=request.data)
        if not s.is_valid():
            return _invalid(s)
        data = s.validated_data
        try:
            record = GeminiInstructionGenerator().generate(
                data['crop'],
                SensorSnapshot.from_dict(data['sensorData']),
                data['daysSincePlanting'],
                data['cropDuration'],
                data['language'],
            )
        except FarmError as e:
            return _failed(e)
        return Response(record.to_dict(), status=status.HTTP_200_OK)


@extend_schema(
    tags=['IA'],
    summary='Predicción de cultivo',
    description=(
        "Sugiere el cultivo más adecuado según los sensores. Si la IA no devuelve JSON válido "
        "se responde un registro de respaldo con el texto recibido."
    ),
    request=CropPredictionRequestSerializer,
    responses={200: CropPredictionSerializer, 500: ERROR_EXAMPLE},
)
class CropPredictionView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = CropPredictionRequestSerializer

    def post(self, request):
        s = self.serializer_class(data=request.data)
        if not s.is_valid():
            return _invalid(s)
        sensors = SensorSnapshot.from_dict(s.validated_data['sensorData'])
        try:
            text = GeminiClient().generate(
                crop_prediction_prompt(sensors, s.validated_data['language']),
                temperature=0.5,
                max_output_tokens=512,
            )
        except FarmError as e:
            return _failed(e)
        prediction = parse_crop_prediction(text)
        prediction['matchedCrop'] = match_crop(prediction['cropName'])
        return Response(prediction, status=status.HTTP_200_OK)


@extend_schema(
    tags=['IA'],
    summary='Chat con el asistente de la granja',
    description="Responde el último mensaje del usuario con el contexto de sensores y el cultivo predicho.",
    request=ChatRequestSerializer,
    responses={200: OpenApiExample('Respuesta', value={"response": "Riega por la tarde..."}), 500: ERROR_EXAMPLE},
)
class FarmChatView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = ChatRequestSerializer

    def post(self, request):
        s = self.serializer_class(data=request.data)
        if not s.is_valid():
            return _invalid(s)
        data = s.validated_data
        sensors = SensorSnapshot.from_dict(data['sensorData']) if data['sensorData'] else None
        user_message = data['messages'][-1]['content']
        messages = [
            {"role": "system", "content": chat_system_prompt(sensors, data['predictedCrop'], data['language'])},
            {"role": "user", "content": user_message},
        ]
        try:
            text = AIGatewayClient().chat(messages, max_tokens=1024, temperature=0.7)
        except FarmError as e:
            return _failed(e)
        return Response({"response": text or 'Sorry, I could not generate a response.'}, status=status.HTTP_200_OK)


@extend_schema(
    tags=['IA'],
    summary='Asesoría de seguros agrícolas',
    request=InsuranceAdviceRequestSerializer,
    responses={200: OpenApiExample('Respuesta', value={"advice": "1. PMFBY ..."}), 500: ERROR_EXAMPLE},
)
class InsuranceAdviceView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = InsuranceAdviceRequestSerializer

    def post(self, request):
        s = self.serializer_class(data=request.data)
        if not s.is_valid():
            return _invalid(s)
        data = s.validated_data
        prompt = insurance_advice_prompt(data['cropType'], data['location'], data['season'], data['language'])
        try:
            text = AIGatewayClient().chat([{"role": "user", "content": prompt}], max_tokens=2048)
        except FarmError as e:
            return _failed(e)
        return Response({"advice": text or 'Sorry, I could not generate insurance advice.'}, status=status.HTTP_200_OK)


@extend_schema(
    tags=['IA'],
    summary='Precios de mercado del cultivo',
    request=CropPricesRequestSerializer,
    responses={200: OpenApiExample('Respuesta', value={"priceInfo": "Wholesale: ₹2,100/quintal ..."}), 500: ERROR_EXAMPLE},
)
class CropPricesView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = CropPricesRequestSerializer

    def post(self, request):
        s = self.serializer_class(data=request.data)
        if not s.is_valid():
            return _invalid(s)
        data = s.validated_data
        prompt = crop_prices_prompt(data['cropName'], data['location'], data['language'])
        try:
            text = AIGatewayClient().chat([{"role": "user", "content": prompt}], max_tokens=2048)
        except FarmError as e:
            return _failed(e)
        return Response({"priceInfo": text or 'Sorry, I could not generate price information.'}, status=status.HTTP_200_OK)
