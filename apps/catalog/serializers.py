from rest_framework import serializers


class CatalogItemSerializer(serializers.Serializer):
    """Catalog entry of a scanned item."""

    item_id = serializers.CharField()
    display_name = serializers.CharField()
    created_at = serializers.DateTimeField()
