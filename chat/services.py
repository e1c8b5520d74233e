"""
Serviço de chat entre usuários e donos de quadra
"""
import logging

from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, Q
from django.utils import timezone

from booking.models import Quadra
from users.utils import is_quadra_admin
from .models import Chat, ChatMessage

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


class ChatService:

    @staticmethod
    def get_default_admin():
        """Primeiro administrador cadastrado, para conversas sem quadra"""
        return User.objects.filter(profile__role='admin', is_active=True).order_by('id').first()

    @staticmethod
    def start_chat(user, quadra=None):
        """
        Abre (ou reabre) a conversa do usuário com o dono da quadra

        Sem quadra a conversa é com o administrador padrão.

        Returns:
            (chat, created)
        """
        admin = quadra.owner if quadra is not None else ChatService.get_default_admin()
        if admin is None:
            raise ValidationError('Nenhum administrador disponível para conversar')

        if admin.id == user.id:
            raise ValidationError('Você não pode iniciar uma conversa consigo mesmo')

        # Quadra excluída deixa a conversa com quadra NULL; pode haver mais de uma
        chat = Chat.objects.filter(user=user, admin=admin, quadra=quadra).order_by(
            F('last_message_time').desc(nulls_last=True), '-created_at'
        ).first()
        created = chat is None
        if created:
            chat = Chat.objects.create(user=user, admin=admin, quadra=quadra)
            logger.info(f"Chat {chat.id} started by {user.username} with {admin.username}")
        elif not chat.is_active:
            chat.is_active = True
            chat.save(update_fields=['is_active'])

        return chat, created

    @staticmethod
    def chats_for(user, quadra_id=None):
        """Conversas do usuário (como cliente ou como dono), mais recentes primeiro"""
        if is_quadra_admin(user):
            chats = Chat.objects.filter(admin=user)
        else:
            chats = Chat.objects.filter(user=user)

        if quadra_id:
            chats = chats.filter(quadra_id=quadra_id)

        return chats.filter(is_active=True).select_related('user', 'admin', 'quadra').annotate(
            unread_count=Count('messages', filter=Q(messages__receiver=user, messages__is_read=False))
        ).order_by('-last_message_time', '-created_at')

    @staticmethod
    def get_chat_for_participant(chat_id, user):
        chat = Chat.objects.select_related('user', 'admin', 'quadra').filter(id=chat_id, is_active=True).first()
        if chat is None or not chat.is_participant(user):
            return None
        return chat

    @staticmethod
    def mark_read(chat, reader):
        """Marca como lidas as mensagens endereçadas ao leitor"""
        return ChatMessage.objects.filter(chat=chat, receiver=reader, is_read=False).update(is_read=True)

    @staticmethod
    def send_message(chat, sender, text):
        text = (text or '').strip()
        if not text:
            raise ValidationError('A mensagem não pode estar vazia')
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f'A mensagem pode ter no máximo {MAX_MESSAGE_LENGTH} caracteres')
        if not chat.is_participant(sender):
            raise ValidationError('Você não participa desta conversa')

        with transaction.atomic():
            message = ChatMessage.objects.create(
                chat=chat,
                sender=sender,
                receiver=chat.other_participant(sender),
                message=text
            )
            chat.last_message = text
            chat.last_message_time = message.created_at or timezone.now()
            chat.save(update_fields=['last_message', 'last_message_time'])

        return message

    @staticmethod
    def delete_chat(chat, user):
        if not chat.is_participant(user):
            raise ValidationError('Você não participa desta conversa')

        chat_id = chat.id
        chat.delete()
        logger.info(f"Chat {chat_id} deleted by {user.username}")


def message_to_dict(message):
    return {
        'id': message.id,
        'sender_id': message.sender_id,
        'receiver_id': message.receiver_id,
        'message': message.message,
        'created_at': message.created_at.isoformat(),
        'is_read': message.is_read,
    }


def chat_to_dict(chat, viewer):
    other = chat.other_participant(viewer)
    data = {
        'id': chat.id,
        'user_id': chat.user_id,
        'admin_id': chat.admin_id,
        'other_name': other.get_full_name() or other.username,
        'quadra_id': chat.quadra_id,
        'quadra_name': chat.quadra.name if chat.quadra else None,
        'last_message': chat.last_message,
        'last_message_time': chat.last_message_time.isoformat() if chat.last_message_time else None,
        'created_at': chat.created_at.isoformat(),
    }
    if hasattr(chat, 'unread_count'):
        data['unread_count'] = chat.unread_count
    return data


def get_quadra_or_none(quadra_id):
    if quadra_id in (None, ''):
        return None
    return Quadra.objects.select_related('owner').filter(id=quadra_id).first()
