from django.db import models
from django.utils import timezone


class Identity(models.Model):
    """
    Scanned badge holder with a salted PIN hash.

    Backs the 'identities' document collection. The primary key is the
    normalized badge code, so a second registration of the same code is
    rejected by the database.
    """

    user_id = models.CharField(primary_key=True, max_length=255)
    display_name = models.CharField(max_length=100)

    # Hex encoded: 16 random bytes -> 32 chars, SHA-256 -> 64 chars
    salt = models.CharField(max_length=32)
    pin_hash = models.CharField(max_length=64)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'identities'
        ordering = ['display_name']

    def __str__(self):
        return f"{self.display_name} ({self.user_id})"
