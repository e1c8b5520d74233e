from django.urls import path
from . import views

urlpatterns = [
    path('quadras/', views.quadras_list, name='quadras_list'),
    path('quadras/<int:quadra_id>/', views.quadra_detail, name='quadra_detail'),
    path('quadras/<int:quadra_id>/reviews/', views.submit_review, name='submit_review'),
    path('available-slots/', views.get_available_slots, name='available_slots'),
    path('create/', views.create_booking, name='create_booking'),
    path('bookings/<int:booking_id>/', views.get_booking_info, name='booking_info'),
    path('bookings/<int:booking_id>/pay/', views.pay_booking, name='pay_booking'),
    path('bookings/<int:booking_id>/cancel/', views.cancel_booking, name='cancel_booking'),
    path('my-bookings/', views.my_bookings, name='my_bookings'),
]
