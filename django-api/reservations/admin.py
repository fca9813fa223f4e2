from django.contrib import admin

from reservations.models import MailNotification, Performance, Reservation, Stage


class StageInline(admin.TabularInline):
    model = Stage
    extra = 1


@admin.register(Performance)
class PerformanceAdmin(admin.ModelAdmin):
    list_display = ["title", "venue", "troupe_id", "created_at"]
    search_fields = ["title", "venue", "troupe_id"]
    inlines = [StageInline]


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ["name", "performance", "stage_index", "party_size", "status", "checked_in"]
    list_filter = ["status", "checked_in", "performance"]
    search_fields = ["name", "email"]
    readonly_fields = ["cancellation_token", "created_at", "cancelled_at", "checked_in_at"]


@admin.register(MailNotification)
class MailNotificationAdmin(admin.ModelAdmin):
    list_display = ["type", "recipient", "status", "created_at"]
    list_filter = ["status", "type"]
