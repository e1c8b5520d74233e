from django.urls import path
from . import views

urlpatterns = [
    path('ajax/register/', views.ajax_register, name='ajax_register'),
    path('ajax/login/', views.ajax_login, name='ajax_login'),
    path('ajax/logout/', views.ajax_logout, name='ajax_logout'),
    path('ajax/me/', views.ajax_me, name='ajax_me'),
    path('ajax/update-profile/', views.update_profile, name='ajax_update_profile'),
    path('ajax/upload-avatar/', views.upload_avatar, name='ajax_upload_avatar'),
    path('ajax/delete-avatar/', views.delete_avatar, name='ajax_delete_avatar'),
]
