from django.contrib import admin
from .models import (
    Booking,
    BookingDiscount,
    BookingHistory,
    Field,
    MembershipSeries,
    Payment,
    PricingTier,
    ScheduleSlot,
    SeasonalRate,
    SpecialDate,
    Stadium,
    Staff,
    StaffAssignment,
    StaffAvailability,
)


@admin.register(Stadium)
class StadiumAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'timezone', 'status', 'requires_confirmation']
    list_filter = ['status']


@admin.register(Field)
class FieldAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'stadium', 'field_type', 'base_hourly_rate', 'status']
    list_filter = ['status', 'field_type']


@admin.register(PricingTier)
class PricingTierAdmin(admin.ModelAdmin):
    list_display = ['id', 'field', 'name', 'start_time', 'end_time', 'rate', 'position', 'is_active']


@admin.register(SeasonalRate)
class SeasonalRateAdmin(admin.ModelAdmin):
    list_display = ['id', 'field', 'season', 'start_date', 'end_date', 'rate']


@admin.register(ScheduleSlot)
class ScheduleSlotAdmin(admin.ModelAdmin):
    list_display = ['id', 'field', 'day_of_week', 'special_date', 'start_time', 'end_time', 'is_available']
    list_filter = ['day_of_week', 'is_available']


@admin.register(SpecialDate)
class SpecialDateAdmin(admin.ModelAdmin):
    list_display = ['id', 'field', 'date', 'reason']


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'stadium', 'role', 'hourly_rate', 'status']
    list_filter = ['role', 'status']


@admin.register(StaffAvailability)
class StaffAvailabilityAdmin(admin.ModelAdmin):
    list_display = ['id', 'staff', 'day_of_week', 'start_time', 'end_time', 'is_available']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['booking_number', 'field', 'booking_date', 'start_time', 'end_time', 'status', 'payment_status']
    list_filter = ['status', 'payment_status', 'booking_type']
    search_fields = ['booking_number']


@admin.register(BookingHistory)
class BookingHistoryAdmin(admin.ModelAdmin):
    list_display = ['booking', 'sequence', 'action', 'changed_by', 'timestamp']
    list_filter = ['action']

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'booking', 'method', 'amount', 'status', 'paid_at']


@admin.register(StaffAssignment)
class StaffAssignmentAdmin(admin.ModelAdmin):
    list_display = ['id', 'booking', 'staff', 'role', 'hours', 'total_charge', 'status']


@admin.register(BookingDiscount)
class BookingDiscountAdmin(admin.ModelAdmin):
    list_display = ['id', 'booking', 'reference', 'discount_type', 'value', 'amount']


@admin.register(MembershipSeries)
class MembershipSeriesAdmin(admin.ModelAdmin):
    list_display = ['id', 'field', 'pattern', 'day_of_week', 'start_date', 'total_occurrences', 'is_active']
    list_filter = ['pattern', 'is_active']
