from django.contrib import admin
from .models import Entity


@admin.register(Entity)
class EntityAdmin(admin.ModelAdmin):
    list_display = ('name', 'entity_type', 'registration_number', 'owner', 'is_suspended')
    list_filter = ('entity_type', 'is_suspended')
    search_fields = ('name', 'registration_number', 'email')
