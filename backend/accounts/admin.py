from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import PayoutAccount, User


@admin.register(User)
class PGStayUserAdmin(UserAdmin):
    list_display = ("username", "email", "display_name", "role", "is_active")
    list_filter = ("role", "is_active", "is_staff")
    fieldsets = UserAdmin.fieldsets + (("Marketplace", {"fields": ("display_name", "role")}),)


@admin.register(PayoutAccount)
class PayoutAccountAdmin(admin.ModelAdmin):
    list_display = ("owner", "payee_name", "payee_identifier", "updated_at")
    search_fields = ("owner__email", "payee_name", "payee_identifier")
