from django.contrib import admin
from .models import Quadra, OperatingHours, Booking, Payment, BookingHistory, Review


class OperatingHoursInline(admin.TabularInline):
    model = OperatingHours
    extra = 0


@admin.register(Quadra)
class QuadraAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'address', 'price_per_hour', 'rating', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'address', 'owner__username']
    inlines = [OperatingHoursInline]


class PaymentInline(admin.StackedInline):
    model = Payment
    extra = 0
    readonly_fields = ['created_at', 'paid_at']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['user', 'quadra', 'date', 'start_time', 'end_time', 'total_price', 'status']
    list_filter = ['status', 'date']
    search_fields = ['user__username', 'quadra__name']
    inlines = [PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['booking', 'amount', 'payment_method', 'status', 'paid_at']
    list_filter = ['status', 'payment_method']


@admin.register(BookingHistory)
class BookingHistoryAdmin(admin.ModelAdmin):
    list_display = ['booking', 'action', 'user', 'created_at']
    list_filter = ['action']


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['quadra', 'user', 'rating', 'created_at']
    list_filter = ['rating']
    search_fields = ['quadra__name', 'user__username']
