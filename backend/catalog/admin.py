from django.contrib import admin

from .models import Addon, Package, Service, Setting


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "sedan_price", "suv_price", "truck_price", "is_active")
    list_filter = ("is_active",)
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = ("name", "base_price", "is_active")
    list_filter = ("is_active",)


@admin.register(Addon)
class AddonAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "sedan_price", "suv_price", "commercial_price", "is_active", "sort_order")
    list_filter = ("is_active", "is_standalone", "category")
    search_fields = ("name", "slug")
    ordering = ("sort_order", "name")


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ("key", "value", "updated_at")
