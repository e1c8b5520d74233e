from django.db import models
from django.contrib.auth.models import User

from booking.models import Quadra


class Chat(models.Model):
    """Conversa entre quem aluga (user) e o dono da quadra (admin)"""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='user_chats', verbose_name='Usuário')
    admin = models.ForeignKey(User, on_delete=models.CASCADE, related_name='admin_chats', verbose_name='Administrador')
    quadra = models.ForeignKey(Quadra, on_delete=models.SET_NULL, null=True, blank=True, related_name='chats')
    last_message = models.TextField(blank=True, default='')
    last_message_time = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-last_message_time', '-created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'admin', 'quadra'], name='unique_chat_per_quadra'),
        ]

    def __str__(self):
        return f"{self.user.username} <-> {self.admin.username}"

    def is_participant(self, user):
        return user.id in (self.user_id, self.admin_id)

    def other_participant(self, user):
        return self.admin if user.id == self.user_id else self.user


class ChatMessage(models.Model):
    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sent_messages')
    receiver = models.ForeignKey(User, on_delete=models.CASCADE, related_name='received_messages')
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    is_read = models.BooleanField(default=False)

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['chat', 'receiver', 'is_read'], name='chat_msg_unread_idx'),
        ]

    def __str__(self):
        return f"{self.sender.username}: {self.message[:30]}"
