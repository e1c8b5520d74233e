from django.http import JsonResponse
from django.views.decorators.http import require_POST, require_GET
from django.core.exceptions import ValidationError

from booking.decorators import login_required_json, api_data_ratelimit, api_write_ratelimit
from booking.utils import get_request_data
from .services import ChatService, chat_to_dict, message_to_dict, get_quadra_or_none

import logging
logger = logging.getLogger(__name__)


def _error(message, status=400):
    return JsonResponse({'success': False, 'message': message}, status=status)


def _chat_not_found():
    return _error('Conversa não encontrada', status=404)


@require_POST
@login_required_json
@api_write_ratelimit()
def start_chat(request):
    data = get_request_data(request)
    if data is None:
        return _error('Dados inválidos')

    quadra = None
    quadra_id = data.get('quadra_id')
    if quadra_id not in (None, ''):
        try:
            quadra = get_quadra_or_none(int(quadra_id))
        except (TypeError, ValueError):
            return _error('Quadra inválida')
        if quadra is None:
            return _error('Quadra não encontrada', status=404)

    try:
        chat, created = ChatService.start_chat(request.user, quadra)
    except ValidationError as e:
        return _error(e.messages[0])

    return JsonResponse({
        'success': True,
        'created': created,
        'chat': chat_to_dict(chat, request.user)
    }, status=201 if created else 200)


@require_GET
@login_required_json
@api_data_ratelimit()
def chats_list(request):
    quadra_id = request.GET.get('quadra', '').strip()
    if quadra_id and not quadra_id.isdigit():
        return _error('Quadra inválida')

    chats = ChatService.chats_for(request.user, quadra_id or None)
    return JsonResponse({
        'success': True,
        'chats': [chat_to_dict(chat, request.user) for chat in chats]
    })


@require_GET
@login_required_json
@api_data_ratelimit()
def chat_detail(request, chat_id):
    """Conversa com todas as mensagens; marca como lidas as recebidas"""
    chat = ChatService.get_chat_for_participant(chat_id, request.user)
    if chat is None:
        return _chat_not_found()

    marked = ChatService.mark_read(chat, request.user)
    messages = chat.messages.order_by('created_at')

    return JsonResponse({
        'success': True,
        'chat': chat_to_dict(chat, request.user),
        'messages': [message_to_dict(message) for message in messages],
        'marked_as_read': marked
    })


@require_POST
@login_required_json
@api_write_ratelimit(rate='30/m')
def send_message(request, chat_id):
    chat = ChatService.get_chat_for_participant(chat_id, request.user)
    if chat is None:
        return _chat_not_found()

    data = get_request_data(request)
    if data is None:
        return _error('Dados inválidos')

    try:
        message = ChatService.send_message(chat, request.user, data.get('message', ''))
    except ValidationError as e:
        return _error(e.messages[0])

    return JsonResponse({
        'success': True,
        'message': message_to_dict(message)
    }, status=201)


@require_POST
@login_required_json
def delete_chat(request, chat_id):
    chat = ChatService.get_chat_for_participant(chat_id, request.user)
    if chat is None:
        return _chat_not_found()

    ChatService.delete_chat(chat, request.user)
    return JsonResponse({
        'success': True,
        'message': 'Conversa excluída'
    })
