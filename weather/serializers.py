from rest_framework import serializers


class WeatherRequestSerializer(serializers.Serializer):
    city = serializers.CharField(required=False, allow_blank=True, default='')
    lat = serializers.FloatField(required=False, allow_null=True, default=None, min_value=-90, max_value=90)
    lon = serializers.FloatField(required=False, allow_null=True, default=None, min_value=-180, max_value=180)

    def validate(self, attrs):
        if not attrs.get('city') and (attrs.get('lat') is None or attrs.get('lon') is None):
            raise serializers.ValidationError('Either city name or coordinates required')
        return attrs
