"""
Decoradores de rate limiting e de acesso para os endpoints JSON
"""
from functools import wraps
from django.http import JsonResponse
from django_ratelimit import ALL, UNSAFE
from django_ratelimit.decorators import ratelimit
import logging

logger = logging.getLogger(__name__)


def api_ratelimit(key='ip', rate='30/m', method=ALL):
    """
    Rate limiting para endpoints da API

    Args:
        key: Chave de agrupamento (ip, user, user_or_ip, header:x-real-ip)
        rate: Limite no formato <count>/<period>, por exemplo '10/m', '100/h'
        method: Métodos HTTP limitados (ALL, UNSAFE ou lista)

    Quando o limite estoura a resposta é 429 em JSON.
    """
    def decorator(func):
        @wraps(func)
        @ratelimit(key=key, rate=rate, method=method, block=False)
        def wrapper(request, *args, **kwargs):
            if getattr(request, 'limited', False):
                logger.warning(
                    f"Rate limit exceeded for {func.__name__}: "
                    f"key={key}, rate={rate}, "
                    f"ip={request.META.get('REMOTE_ADDR')}, "
                    f"user={request.user if request.user.is_authenticated else 'anonymous'}"
                )

                return JsonResponse({
                    'success': False,
                    'error': 'rate_limit_exceeded',
                    'message': 'Muitas requisições. Aguarde um pouco e tente novamente.'
                }, status=429)

            return func(request, *args, **kwargs)

        return wrapper
    return decorator


def auth_ratelimit(rate='5/5m'):
    """
    Limite estrito para login e cadastro (força bruta)

    Default: 5 tentativas em 5 minutos
    """
    return api_ratelimit(key='ip', rate=rate, method=['POST'])


def api_data_ratelimit(rate='60/m'):
    """Leitura de dados. Default: 60 requisições por minuto"""
    return api_ratelimit(key='user_or_ip', rate=rate, method=['GET'])


def api_write_ratelimit(rate='10/m'):
    """Escrita de dados. Default: 10 requisições por minuto"""
    return api_ratelimit(key='user_or_ip', rate=rate, method=UNSAFE)


def login_required_json(func):
    """Como login_required, mas responde 401 em JSON em vez de redirecionar"""
    @wraps(func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({
                'success': False,
                'message': 'Faça login para continuar'
            }, status=401)
        return func(request, *args, **kwargs)
    return wrapper


def admin_required(func):
    """Apenas usuários com papel de administrador (donos de quadra)"""
    from users.utils import is_quadra_admin

    @wraps(func)
    @login_required_json
    def wrapper(request, *args, **kwargs):
        if not is_quadra_admin(request.user):
            logger.warning(f"Non-admin user {request.user.username} tried to access {func.__name__}")
            return JsonResponse({
                'success': False,
                'message': 'Acesso restrito aos administradores'
            }, status=403)
        return func(request, *args, **kwargs)
    return wrapper
