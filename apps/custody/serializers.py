from rest_framework import serializers


class CustodyRecordSerializer(serializers.Serializer):
    """Active checkout."""

    item_id = serializers.CharField()
    item_display_name = serializers.CharField()
    holder_user_id = serializers.CharField()
    holder_display_name = serializers.CharField()
    checkout_time = serializers.DateTimeField()


class CustodyEventSerializer(CustodyRecordSerializer):
    """Closed checkout."""

    event_id = serializers.CharField()
    checkin_time = serializers.DateTimeField()
    checked_in_by_user_id = serializers.CharField()


class ConflictResponseSerializer(serializers.Serializer):
    """Checkout refused because the item is already held."""

    error = serializers.CharField()
    record = CustodyRecordSerializer()
