from django.db import models


class CustodyRecord(models.Model):
    """
    Active checkout of one item. Backs the 'active_custody' collection.

    item_id is the primary key: at most one active record per item, enforced
    by the database. Checkin deletes the row; the closed checkout is kept as
    a CustodyEvent.
    """

    item_id = models.CharField(primary_key=True, max_length=255)
    item_display_name = models.CharField(max_length=255)
    holder_user_id = models.CharField(max_length=255, db_index=True)
    holder_display_name = models.CharField(max_length=100)
    checkout_time = models.DateTimeField(db_index=True)

    class Meta:
        db_table = 'active_custody'
        ordering = ['-checkout_time', 'item_id']

    def __str__(self):
        return f"{self.item_display_name} -> {self.holder_display_name}"


class CustodyEvent(models.Model):
    """Closed checkout, written on checkin. Backs the 'custody_events' collection."""

    event_id = models.CharField(primary_key=True, max_length=32)
    item_id = models.CharField(max_length=255, db_index=True)
    item_display_name = models.CharField(max_length=255)
    holder_user_id = models.CharField(max_length=255, db_index=True)
    holder_display_name = models.CharField(max_length=100)
    checkout_time = models.DateTimeField()
    checkin_time = models.DateTimeField(db_index=True)
    checked_in_by_user_id = models.CharField(max_length=255)

    class Meta:
        db_table = 'custody_events'
        ordering = ['-checkin_time']

    def __str__(self):
        return f"{self.item_display_name} returned by {self.checked_in_by_user_id}"
