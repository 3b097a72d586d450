from django.contrib import admin, messages

from core.errors import ServiceError

from .models import Invoice, Payment
from .services import lifecycle


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "payer", "payee", "amount", "currency", "status", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("payer__email", "payee__email", "proof_reference")
    readonly_fields = (
        "booking",
        "payer",
        "payee",
        "amount",
        "currency",
        "payable_uri",
        "proof_reference",
        "status",
        "verified_by",
        "verified_at",
        "rejection_reason",
        "created_at",
        "updated_at",
    )
    actions = ["record_refund"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Record refund for selected verified payments")
    def record_refund(self, request, queryset):
        refunded = 0
        for payment in queryset:
            try:
                lifecycle.record_refund(actor=request.user, payment_id=payment.pk, note="Recorded from admin")
            except ServiceError as exc:
                self.message_user(request, f"Payment {payment.pk}: {exc.message}", level=messages.WARNING)
            else:
                refunded += 1
        if refunded:
            self.message_user(request, f"{refunded} payment(s) marked refunded.")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "payer", "payee", "amount", "currency", "status", "created_at")
    search_fields = ("invoice_number", "payer__email", "payee__email")
    readonly_fields = (
        "invoice_number",
        "payment",
        "booking",
        "payer",
        "payee",
        "amount",
        "currency",
        "line_items",
        "status",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
