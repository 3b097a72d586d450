from django.contrib import admin

from .models import Property


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "nightly_rate", "capacity", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "address", "owner__email")
