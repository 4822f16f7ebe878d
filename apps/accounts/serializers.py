from rest_framework import serializers


class ScanCodeSerializer(serializers.Serializer):
    """Raw scanner payload."""

    code = serializers.CharField(max_length=2048, trim_whitespace=False)


class VerifyPinSerializer(ScanCodeSerializer):
    """Badge scan plus PIN attempt."""

    pin = serializers.RegexField(
        r'^[0-9]{4}$',
        error_messages={'invalid': 'PIN must be exactly 4 digits.'},
        style={'input_type': 'password'},
    )


class RegisterSerializer(VerifyPinSerializer):
    """First scan of a badge: name the holder and choose a PIN."""

    display_name = serializers.CharField(max_length=100)


class IdentifyResponseSerializer(serializers.Serializer):
    code = serializers.CharField()
    known = serializers.BooleanField()
    display_name = serializers.CharField(allow_null=True)


class IdentitySerializer(serializers.Serializer):
    """Public identity fields; salt and hash are never serialized."""

    user_id = serializers.CharField()
    display_name = serializers.CharField()
    created_at = serializers.DateTimeField()


class SessionSerializer(serializers.Serializer):
    identity = IdentitySerializer()
    established_at = serializers.DateTimeField()


class SessionTokenSerializer(serializers.Serializer):
    token = serializers.CharField()
    session = SessionSerializer()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
