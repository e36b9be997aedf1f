"""
Core models: room
"""
import uuid
from django.db import models


class RoomTypeChoices(models.TextChoices):
    """Treatment room types"""
    STANDARD = 'standard', 'Standard Chair'
    SURGERY = 'surgery', 'Surgery'
    XRAY = 'xray', 'X-Ray'
    ORTHODONTICS = 'orthodontics', 'Orthodontics'


class Room(models.Model):
    """
    Treatment rooms an appointment can be held in.

    The room catalog is managed elsewhere; appointments only reference it.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room_code = models.CharField(max_length=20, unique=True)
    room_name = models.CharField(max_length=255)
    room_type = models.CharField(
        max_length=20,
        choices=RoomTypeChoices.choices,
        default=RoomTypeChoices.STANDARD
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'room'
        verbose_name = 'Room'
        verbose_name_plural = 'Rooms'
        indexes = [
            models.Index(fields=['is_active'], name='idx_room_active'),
        ]

    def __str__(self):
        return f"{self.room_code} - {self.room_name}"
