from rest_framework import serializers

from .prompts import LANGUAGE_NAMES


class LanguageField(serializers.CharField):
    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return value if value in LANGUAGE_NAMES else 'en'


class DailyGuideRequestSerializer(serializers.Serializer):
    crop = serializers.CharField(help_text="Cultivo en curso")
    sensorData = serializers.DictField(required=False, default=dict, help_text="Lectura de sensores")
    daysSincePlanting = serializers.IntegerField(required=False, min_value=0, default=0)
    cropDuration = serializers.IntegerField(required=False, min_value=1, allow_null=True, default=None)
    language = LanguageField(required=False, default='en')


class DailyGuideResponseSerializer(serializers.Serializer):
    instructions = serializers.CharField()
    generatedAt = serializers.CharField()


class CropPredictionRequestSerializer(serializers.Serializer):
    sensorData = serializers.DictField(help_text="Lectura de sensores")
    language = LanguageField(required=False, default='en')


class CropPredictionSerializer(serializers.Serializer):
    cropName = serializers.CharField()
    reason = serializers.CharField(allow_blank=True)
    recommendations = serializers.CharField(allow_blank=True)
    matchedCrop = serializers.CharField(allow_null=True, help_text="Cultivo conocido equivalente, si existe")


class ChatMessageSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=['user', 'assistant', 'system'])
    content = serializers.CharField(allow_blank=True)


class ChatRequestSerializer(serializers.Serializer):
    messages = ChatMessageSerializer(many=True, allow_empty=False)
    sensorData = serializers.DictField(required=False, allow_null=True, default=None)
    predictedCrop = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    language = LanguageField(required=False, default='en')


class InsuranceAdviceRequestSerializer(serializers.Serializer):
    cropType = serializers.CharField()
    location = serializers.CharField()
    season = serializers.CharField()
    language = LanguageField(required=False, default='en')


class CropPricesRequestSerializer(serializers.Serializer):
    cropName = serializers.CharField()
    location = serializers.CharField()
    language = LanguageField(required=False, default='en')
