from rest_framework import serializers

HHMM = r'^([01]\d|2[0-3]):[0-5]\d$'


class SensorSnapshotSerializer(serializers.Serializer):
    temperature = serializers.FloatField(required=False, allow_null=True)
    humidity = serializers.FloatField(required=False, allow_null=True, min_value=0, max_value=100)
    soilMoisture = serializers.FloatField(required=False, allow_null=True, min_value=0, max_value=100)
    pH = serializers.FloatField(required=False, allow_null=True, min_value=0, max_value=14)
    lightIntensity = serializers.FloatField(required=False, allow_null=True, min_value=0)
    rainDetected = serializers.BooleanField(required=False, allow_null=True)


class FarmControlsSerializer(serializers.Serializer):
    """Todos los campos son opcionales: PATCH aplica solo lo enviado."""
    autoMode = serializers.BooleanField(required=False)
    laserSystem = serializers.BooleanField(required=False)
    pump = serializers.BooleanField(required=False)
    startTime = serializers.RegexField(HHMM, required=False, help_text="Hora de inicio HH:MM")
    stopDuration = serializers.RegexField(HHMM, required=False, help_text="Duración HH:MM")
    solarTracker = serializers.BooleanField(required=False)
    soilLimit = serializers.IntegerField(required=False, min_value=0, max_value=100, help_text="Umbral de humedad del suelo (%)")

    def validate(self, attrs):
        if attrs.get('autoMode') is True and attrs.get('pump') is True:
            raise serializers.ValidationError("autoMode y pump no pueden activarse a la vez")
        return attrs
