from rest_framework import serializers


class RecordSerializer(serializers.Serializer):
    """Serializer for the shared record and its version."""

    field1 = serializers.CharField(allow_blank=True)
    field2 = serializers.CharField(allow_blank=True)
    field3 = serializers.CharField(allow_blank=True)
    field4 = serializers.CharField(allow_blank=True)
    version = serializers.IntegerField(
        min_value=1,
        help_text="Committed version; increases by one on every successful update.",
    )


class ApplySerializer(serializers.Serializer):
    """Serializer for a version-checked update request."""

    field1 = serializers.CharField(allow_blank=True, trim_whitespace=False)
    field2 = serializers.CharField(allow_blank=True, trim_whitespace=False)
    field3 = serializers.CharField(allow_blank=True, trim_whitespace=False)
    field4 = serializers.CharField(allow_blank=True, trim_whitespace=False)
    expected_version = serializers.IntegerField(
        min_value=1,
        help_text="The version the caller last read. The update is rejected if it is stale.",
    )


class ApplyResultSerializer(serializers.Serializer):
    """Outcome of an update request."""

    success = serializers.BooleanField(
        help_text="False when the record changed since expected_version was read",
    )


class ServiceErrorSerializer(serializers.Serializer):
    detail = serializers.CharField()
