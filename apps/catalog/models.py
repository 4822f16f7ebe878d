from django.db import models
from django.utils import timezone


class CatalogItem(models.Model):
    """Physical item known by its scanned code. Backs the 'catalog_items' collection."""

    item_id = models.CharField(primary_key=True, max_length=255)
    display_name = models.CharField(max_length=255)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'catalog_items'
        ordering = ['display_name']

    def __str__(self):
        return self.display_name
