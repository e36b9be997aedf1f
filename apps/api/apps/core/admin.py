from django.contrib import admin
from .models import Room


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ['room_code', 'room_name', 'room_type', 'is_active', 'created_at']
    list_filter = ['is_active', 'room_type']
    search_fields = ['room_code', 'room_name']
    readonly_fields = ['id', 'created_at', 'updated_at']
