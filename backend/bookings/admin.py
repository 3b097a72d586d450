from django.contrib import admin, messages

from core.errors import ServiceError

from .models import Booking
from .services import bookings as booking_service


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "property", "tenant", "check_in", "check_out", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("property__name", "tenant__email")
    readonly_fields = ("tenant", "property", "check_in", "check_out", "status", "created_at", "updated_at")
    actions = ["mark_completed"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Mark selected stays as completed")
    def mark_completed(self, request, queryset):
        completed = 0
        for booking in queryset:
            try:
                booking_service.mark_completed(actor=request.user, booking_id=booking.pk)
            except ServiceError as exc:
                self.message_user(request, f"Booking {booking.pk}: {exc.message}", level=messages.WARNING)
            else:
                completed += 1
        if completed:
            self.message_user(request, f"{completed} booking(s) marked completed.")
