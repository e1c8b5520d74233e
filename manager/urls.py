"""
Manager App URLs
"""

from django.urls import path
from . import views

app_name = 'manager'

urlpatterns = [
    # API - Quadras
    path('api/quadras/', views.api_quadras_list, name='api_quadras_list'),
    path('api/quadras/create/', views.api_quadra_create, name='api_quadra_create'),
    path('api/quadras/<int:quadra_id>/', views.api_quadra_detail, name='api_quadra_detail'),
    path('api/quadras/<int:quadra_id>/update/', views.api_quadra_update, name='api_quadra_update'),
    path('api/quadras/<int:quadra_id>/delete/', views.api_quadra_delete, name='api_quadra_delete'),
    path('api/quadras/<int:quadra_id>/toggle/', views.api_quadra_toggle, name='api_quadra_toggle'),
    path('api/quadras/<int:quadra_id>/operating-hours/', views.api_operating_hours, name='api_operating_hours'),
    path('api/quadras/<int:quadra_id>/schedule/', views.api_schedule, name='api_schedule'),

    # API - Reservas
    path('api/bookings/', views.api_bookings_list, name='api_bookings_list'),
    path('api/bookings/export/', views.api_bookings_export, name='api_bookings_export'),
    path('api/bookings/<int:booking_id>/confirm/', views.api_booking_confirm, name='api_booking_confirm'),
    path('api/bookings/<int:booking_id>/cancel/', views.api_booking_cancel, name='api_booking_cancel'),
]
