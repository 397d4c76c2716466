from rest_framework import serializers

from ai.prompts import LANGUAGE_NAMES


class LanguageSerializer(serializers.Serializer):
    language = serializers.CharField(required=False, default='en', help_text="Idioma de las instrucciones (en, hi, mr, ta, te)")

    def validate_language(self, value):
        return value if value in LANGUAGE_NAMES else 'en'


class StartGuideSerializer(LanguageSerializer):
    crop = serializers.CharField(required=False, allow_blank=True, default='', help_text="Cultivo a guiar (ej. rice)")


class InstructionRecordSerializer(serializers.Serializer):
    instructions = serializers.CharField()
    generatedAt = serializers.CharField(allow_null=True)


class GuideStateSerializer(serializers.Serializer):
    """Serializer de respuesta: estado de la guía + progreso derivado."""
    active = serializers.BooleanField()
    startDate = serializers.CharField(allow_null=True)
    farmerCrop = serializers.CharField(allow_null=True)
    cropDuration = serializers.IntegerField(allow_null=True)
    daysSincePlanting = serializers.IntegerField()
    progressPercentage = serializers.FloatField()
    today = serializers.CharField()
    todayInstructions = InstructionRecordSerializer(allow_null=True)
    dailyInstructions = serializers.DictField(child=InstructionRecordSerializer())
    generating = serializers.BooleanField()


def guide_state_data(state, progress, generating=False) -> dict:
    data = state.to_dict()
    today = state.instructions_for(progress.today)
    data.update({
        'daysSincePlanting': progress.days_since_planting,
        'progressPercentage': round(progress.progress_percentage, 1),
        'today': progress.today,
        'todayInstructions': today.to_dict() if today else None,
        'generating': generating,
    })
    return data
