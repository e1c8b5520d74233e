from django.contrib.auth import login, authenticate, logout
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST, require_GET
from django.core.exceptions import ValidationError

from booking.decorators import auth_ratelimit, api_write_ratelimit, login_required_json
from booking.utils import get_request_data, form_error_response_data
from .forms import RegistrationForm, LoginForm, ProfileUpdateForm, AvatarUploadForm
from .utils import get_user_profile, user_to_dict

import logging
logger = logging.getLogger(__name__)


@require_POST
@csrf_exempt
@auth_ratelimit()
def ajax_register(request):
    """AJAX cadastro; o usuário já sai logado"""
    data = get_request_data(request)
    if data is None:
        return JsonResponse({'success': False, 'message': 'Dados inválidos'}, status=400)

    try:
        form = RegistrationForm(data)

        if form.is_valid():
            user = form.save()
            login(request, user, backend='django.contrib.auth.backends.ModelBackend')
            logger.info(f"User registered: {user.username} ({user.profile.role})")
            return JsonResponse({
                'success': True,
                'message': 'Cadastro realizado com sucesso!',
                'user': user_to_dict(user)
            }, status=201)

        return JsonResponse(
            form_error_response_data(form, 'Corrija os erros do formulário'),
            status=400
        )

    except Exception as e:
        logger.error(f"Error registering user: {str(e)}", exc_info=True)
        return JsonResponse({
            'success': False,
            'message': 'Erro no servidor. Tente novamente.'
        }, status=500)


@require_POST
@csrf_exempt
@auth_ratelimit()
def ajax_login(request):
    """AJAX login por e-mail e senha"""
    data = get_request_data(request)
    if data is None:
        return JsonResponse({'success': False, 'message': 'Dados inválidos'}, status=400)

    form = LoginForm(data)
    if not form.is_valid():
        return JsonResponse(
            form_error_response_data(form, 'Corrija os erros do formulário'),
            status=400
        )

    user = authenticate(
        request,
        username=form.cleaned_data['email'],
        password=form.cleaned_data['password']
    )

    if user is None:
        logger.warning(f"Failed login for {form.cleaned_data['email']}")
        return JsonResponse({
            'success': False,
            'message': 'E-mail ou senha incorretos'
        }, status=400)

    login(request, user)
    return JsonResponse({
        'success': True,
        'message': 'Login realizado com sucesso!',
        'user': user_to_dict(user)
    })


@require_POST
@csrf_exempt
def ajax_logout(request):
    logout(request)
    return JsonResponse({
        'success': True,
        'message': 'Você saiu da sua conta'
    })


@require_GET
@login_required_json
def ajax_me(request):
    return JsonResponse({
        'success': True,
        'user': user_to_dict(request.user)
    })


@require_POST
@login_required_json
@api_write_ratelimit()
def update_profile(request):
    data = get_request_data(request)
    if data is None:
        return JsonResponse({'success': False, 'message': 'Dados inválidos'}, status=400)

    form = ProfileUpdateForm(data)
    if not form.is_valid():
        return JsonResponse(
            form_error_response_data(form, 'Corrija os erros do formulário'),
            status=400
        )

    user = form.save(request.user)
    return JsonResponse({
        'success': True,
        'message': 'Perfil atualizado!',
        'user': user_to_dict(user)
    })


@require_POST
@login_required_json
@api_write_ratelimit()
def upload_avatar(request):
    """AJAX envio de avatar"""
    form = AvatarUploadForm(request.POST, request.FILES)
    if not form.is_valid():
        return JsonResponse(
            form_error_response_data(form, 'Erro ao enviar o avatar'),
            status=400
        )

    profile = get_user_profile(request.user)
    try:
        profile.save_avatar(form.cleaned_data['avatar'])
    except ValidationError as e:
        return JsonResponse({
            'success': False,
            'message': e.messages[0]
        }, status=400)
    except Exception as e:
        logger.error(f"Error saving avatar for {request.user.username}: {str(e)}", exc_info=True)
        return JsonResponse({
            'success': False,
            'message': 'Erro ao salvar o avatar'
        }, status=500)

    return JsonResponse({
        'success': True,
        'message': 'Avatar atualizado!',
        'avatar_url': profile.get_avatar_url() or ''
    })


@require_POST
@login_required_json
def delete_avatar(request):
    profile = get_user_profile(request.user)

    if not profile.delete_avatar():
        return JsonResponse({
            'success': False,
            'message': 'Você não tem avatar'
        }, status=400)

    return JsonResponse({
        'success': True,
        'message': 'Avatar removido'
    })
