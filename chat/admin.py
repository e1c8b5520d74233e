from django.contrib import admin
from .models import Chat, ChatMessage


class ChatMessageInline(admin.TabularInline):
    model = ChatMessage
    extra = 0
    readonly_fields = ['created_at']


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ['user', 'admin', 'quadra', 'last_message_time', 'is_active']
    list_filter = ['is_active']
    search_fields = ['user__username', 'admin__username', 'quadra__name']
    inlines = [ChatMessageInline]
