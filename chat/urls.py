from django.urls import path
from . import views

urlpatterns = [
    path('start/', views.start_chat, name='chat_start'),
    path('chats/', views.chats_list, name='chats_list'),
    path('chats/<int:chat_id>/', views.chat_detail, name='chat_detail'),
    path('chats/<int:chat_id>/send/', views.send_message, name='chat_send'),
    path('chats/<int:chat_id>/delete/', views.delete_chat, name='chat_delete'),
]
