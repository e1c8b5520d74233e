from django.http import JsonResponse
from django.utils import timezone
from booking.models import Quadra


def home(request):
    """Resumo da API para o cliente do mapa"""
    return JsonResponse({
        'success': True,
        'name': 'OndeTem Quadras',
        'active_quadras': Quadra.objects.filter(is_active=True).count(),
        'server_time': timezone.localtime().isoformat(),
    })
