"""
Manager App Views
Painel do dono: quadras, horários de funcionamento e reservas
"""

from django.shortcuts import get_object_or_404
from django.http import JsonResponse, HttpResponse
from django.utils import timezone
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.forms.models import model_to_dict
from django.views.decorators.http import require_POST, require_GET, require_http_methods
from datetime import datetime
from io import BytesIO
import logging

import openpyxl
from openpyxl.styles import Font, PatternFill

from booking.constants import (
    WEEKDAY_KEYS, ACTIVE_BOOKING_STATUSES, DEFAULT_OPEN_TIME, DEFAULT_CLOSE_TIME,
)
from booking.decorators import admin_required, api_write_ratelimit
from booking.forms import QuadraForm, DayHoursForm
from booking.models import Booking, OperatingHours, Quadra
from booking.serializers import quadra_to_dict, booking_to_dict
from booking.services import BookingService
from booking.utils import (
    add_minutes, generate_time_slots, get_request_data, form_error_response_data,
    intervals_overlap,
)

logger = logging.getLogger(__name__)

BOOKING_STATUSES = ('pending', 'confirmed', 'cancelled')


def _get_own_quadra(request, quadra_id):
    return get_object_or_404(
        Quadra.objects.prefetch_related('operating_hours'),
        id=quadra_id,
        owner=request.user
    )


def _quadra_stats(quadra):
    return {
        'bookings_total': quadra.bookings_total,
        'bookings_pending': quadra.bookings_pending,
        'bookings_confirmed': quadra.bookings_confirmed,
        'revenue': float(quadra.revenue or 0),
    }


def _own_quadras_with_stats(user):
    return Quadra.objects.filter(owner=user).annotate(
        bookings_total=Count('bookings'),
        bookings_pending=Count('bookings', filter=Q(bookings__status='pending')),
        bookings_confirmed=Count('bookings', filter=Q(bookings__status='confirmed')),
        revenue=Sum('bookings__total_price', filter=Q(bookings__status='confirmed')),
    ).order_by('name')


def _filtered_bookings(request):
    """Reservas das quadras do dono, com os filtros status e quadra da query string"""
    bookings = Booking.objects.filter(quadra__owner=request.user).select_related(
        'quadra', 'user', 'payment'
    )

    status = request.GET.get('status', '').strip()
    if status and status != 'all':
        bookings = bookings.filter(status=status)

    quadra_id = request.GET.get('quadra', '').strip()
    if quadra_id and quadra_id != 'all':
        bookings = bookings.filter(quadra_id=quadra_id)

    return bookings.order_by('-created_at')


# =============================================================================
# API - QUADRAS
# =============================================================================

@require_GET
@admin_required
def api_quadras_list(request):
    """API: quadras do dono com estatísticas de reservas"""
    quadras = _own_quadras_with_stats(request.user)

    quadras_data = []
    for quadra in quadras:
        data = quadra_to_dict(quadra)
        data['stats'] = _quadra_stats(quadra)
        quadras_data.append(data)

    return JsonResponse({
        'success': True,
        'quadras': quadras_data,
        'stats': {
            'total_quadras': len(quadras_data),
            'active_quadras': sum(1 for quadra in quadras_data if quadra['is_active']),
        }
    })


@require_GET
@admin_required
def api_quadra_detail(request, quadra_id):
    quadra = get_object_or_404(_own_quadras_with_stats(request.user), id=quadra_id)

    data = quadra_to_dict(quadra)
    data['stats'] = _quadra_stats(quadra)
    data['operating_hours'] = quadra.get_operating_hours_table()

    return JsonResponse({'success': True, 'quadra': data})


@require_POST
@admin_required
@api_write_ratelimit()
def api_quadra_create(request):
    data = get_request_data(request)
    if data is None:
        return JsonResponse({'success': False, 'message': 'Dados inválidos'}, status=400)

    data = dict(data.items())
    data.setdefault('is_active', True)

    form = QuadraForm(data)
    if not form.is_valid():
        return JsonResponse(form_error_response_data(form, 'Corrija os dados da quadra'), status=400)

    quadra = form.save(commit=False)
    quadra.owner = request.user
    quadra.save()

    logger.info(f"Quadra created: {quadra.name} by {request.user.username}")
    return JsonResponse({
        'success': True,
        'message': 'Quadra cadastrada com sucesso',
        'quadra': quadra_to_dict(quadra)
    }, status=201)


@require_POST
@admin_required
@api_write_ratelimit()
def api_quadra_update(request, quadra_id):
    """API: atualização parcial; campos ausentes mantêm o valor atual"""
    quadra = _get_own_quadra(request, quadra_id)

    data = get_request_data(request)
    if data is None:
        return JsonResponse({'success': False, 'message': 'Dados inválidos'}, status=400)

    merged = model_to_dict(quadra, fields=QuadraForm.Meta.fields)
    merged.update(data.items())

    form = QuadraForm(merged, instance=quadra)
    if not form.is_valid():
        return JsonResponse(form_error_response_data(form, 'Corrija os dados da quadra'), status=400)

    quadra = form.save()
    logger.info(f"Quadra {quadra.id} updated by {request.user.username}")
    return JsonResponse({
        'success': True,
        'message': 'Quadra atualizada com sucesso',
        'quadra': quadra_to_dict(quadra)
    })


@require_POST
@admin_required
def api_quadra_delete(request, quadra_id):
    quadra = _get_own_quadra(request, quadra_id)

    future_bookings = Booking.objects.filter(
        quadra=quadra,
        date__gte=timezone.localdate(),
        status__in=ACTIVE_BOOKING_STATUSES
    ).count()

    if future_bookings > 0:
        return JsonResponse({
            'success': False,
            'message': f'Não é possível excluir a quadra. Há {future_bookings} reserva(s) ativa(s)'
        }, status=400)

    quadra_name = quadra.name
    quadra.delete()

    logger.info(f"Quadra '{quadra_name}' deleted by {request.user.username}")
    return JsonResponse({
        'success': True,
        'message': f'Quadra "{quadra_name}" excluída com sucesso'
    })


@require_POST
@admin_required
def api_quadra_toggle(request, quadra_id):
    quadra = _get_own_quadra(request, quadra_id)
    quadra.is_active = not quadra.is_active
    quadra.save(update_fields=['is_active', 'updated_at'])

    return JsonResponse({
        'success': True,
        'message': 'Quadra ativada' if quadra.is_active else 'Quadra desativada',
        'is_active': quadra.is_active
    })


# =============================================================================
# API - HORÁRIOS DE FUNCIONAMENTO
# =============================================================================

@require_http_methods(['GET', 'POST'])
@admin_required
def api_operating_hours(request, quadra_id):
    """
    API: horários da semana

    GET devolve os sete dias. POST aceita
        {"hours": {"monday": {"open": "08:00", "close": "22:00", "is_open": true}, ...}}
    ou {"copy_from": <weekday>} para replicar um dia em todos os outros.
    """
    quadra = _get_own_quadra(request, quadra_id)

    if request.method == 'GET':
        return JsonResponse({
            'success': True,
            'operating_hours': quadra.get_operating_hours_table()
        })

    data = get_request_data(request)
    if data is None:
        return JsonResponse({'success': False, 'message': 'Dados inválidos'}, status=400)

    if data.get('copy_from') not in (None, ''):
        try:
            source_weekday = int(data['copy_from'])
        except (TypeError, ValueError):
            source_weekday = -1
        if not 0 <= source_weekday <= 6:
            return JsonResponse({'success': False, 'message': 'Dia de origem inválido'}, status=400)

        source = quadra.get_operating_hours_table()[WEEKDAY_KEYS[source_weekday]]
        hours = {key: dict(source) for key in WEEKDAY_KEYS}
    else:
        hours = data.get('hours')
        if not isinstance(hours, dict) or not hours:
            return JsonResponse({'success': False, 'message': 'Informe os horários'}, status=400)

    cleaned_days = []
    for key, day in hours.items():
        if key not in WEEKDAY_KEYS or not isinstance(day, dict):
            return JsonResponse({'success': False, 'message': f'Dia inválido: {key}'}, status=400)

        form = DayHoursForm({
            'weekday': WEEKDAY_KEYS.index(key),
            'open': day.get('open') or DEFAULT_OPEN_TIME.strftime('%H:%M'),
            'close': day.get('close') or DEFAULT_CLOSE_TIME.strftime('%H:%M'),
            'is_open': day.get('is_open', True),
        })
        if not form.is_valid():
            response = form_error_response_data(form, 'Horário inválido')
            response['day'] = key
            return JsonResponse(response, status=400)
        cleaned_days.append(form.cleaned_data)

    with transaction.atomic():
        for day in cleaned_days:
            OperatingHours.objects.update_or_create(
                quadra=quadra,
                weekday=day['weekday'],
                defaults={
                    'open_time': day['open'],
                    'close_time': day['close'],
                    'is_open': day['is_open'],
                }
            )

    quadra = _get_own_quadra(request, quadra_id)
    logger.info(f"Operating hours updated for quadra {quadra.id} ({len(cleaned_days)} day(s))")
    return JsonResponse({
        'success': True,
        'message': 'Horários salvos',
        'operating_hours': quadra.get_operating_hours_table()
    })


@require_GET
@admin_required
def api_schedule(request, quadra_id):
    """API: grade do dia de 30 em 30 minutos com a reserva que ocupa cada horário"""
    quadra = _get_own_quadra(request, quadra_id)

    date_str = request.GET.get('date')
    if date_str:
        try:
            schedule_date = datetime.strptime(date_str, '%Y-%m-%d').date()
        except ValueError:
            return JsonResponse({'success': False, 'message': 'Data inválida'}, status=400)
    else:
        schedule_date = timezone.localdate()

    day_hours = quadra.get_day_hours(schedule_date.weekday())
    bookings = list(
        Booking.objects.filter(
            quadra=quadra,
            date=schedule_date,
            status__in=ACTIVE_BOOKING_STATUSES
        ).select_related('quadra', 'user', 'payment').order_by('start_time')
    )

    slots = []
    if day_hours is not None:
        open_time, close_time = day_hours
        for start in generate_time_slots(open_time, close_time):
            end = add_minutes(start, 30) or close_time
            occupying = next(
                (b for b in bookings if intervals_overlap(start, end, b.start_time, b.end_time)),
                None
            )
            slots.append({
                'start_time': start.strftime('%H:%M'),
                'end_time': end.strftime('%H:%M'),
                'booking': booking_to_dict(occupying) if occupying else None,
            })

    return JsonResponse({
        'success': True,
        'quadra_id': quadra.id,
        'date': schedule_date.isoformat(),
        'is_open': day_hours is not None,
        'slots': slots,
        'bookings_count': len(bookings)
    })


# =============================================================================
# API - RESERVAS
# =============================================================================

@require_GET
@admin_required
def api_bookings_list(request):
    """API: reservas das quadras do dono"""
    bookings = _filtered_bookings(request)

    all_bookings = Booking.objects.filter(quadra__owner=request.user)
    counts = {status: 0 for status in BOOKING_STATUSES}
    for row in all_bookings.values('status').annotate(total=Count('id')).order_by():
        counts[row['status']] = row['total']
    counts['total'] = sum(counts.values())

    return JsonResponse({
        'success': True,
        'bookings': [booking_to_dict(booking) for booking in bookings],
        'counts': counts
    })


@require_POST
@admin_required
def api_booking_confirm(request, booking_id):
    booking = get_object_or_404(
        Booking.objects.select_related('quadra', 'user'),
        id=booking_id,
        quadra__owner=request.user
    )

    try:
        BookingService.confirm_by_owner(booking, request.user)
    except ValidationError as e:
        return JsonResponse({'success': False, 'message': e.messages[0]}, status=400)

    return JsonResponse({
        'success': True,
        'message': 'Reserva confirmada',
        'booking': booking_to_dict(booking)
    })


@require_POST
@admin_required
def api_booking_cancel(request, booking_id):
    booking = get_object_or_404(
        Booking.objects.select_related('quadra', 'user'),
        id=booking_id,
        quadra__owner=request.user
    )

    data = get_request_data(request) or {}
    try:
        BookingService.cancel_booking(
            booking, request.user, reason=data.get('reason', 'Cancelada pelo dono da quadra'), allow_past=True
        )
    except ValidationError as e:
        return JsonResponse({'success': False, 'message': e.messages[0]}, status=400)

    return JsonResponse({
        'success': True,
        'message': 'Reserva cancelada',
        'booking': booking_to_dict(booking)
    })


@require_GET
@admin_required
def api_bookings_export(request):
    """API: exportação das reservas filtradas para Excel"""
    try:
        bookings = _filtered_bookings(request)

        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Reservas"

        headers = ['ID', 'Quadra', 'Cliente', 'E-mail', 'Data', 'Início', 'Fim', 'Valor (R$)', 'Status', 'Criada em']
        ws.append(headers)
        for cell in ws[1]:
            cell.font = Font(bold=True, color='FFFFFF')
            cell.fill = PatternFill(start_color='1B7F3B', end_color='1B7F3B', fill_type='solid')

        for booking in bookings:
            ws.append([
                booking.id,
                booking.quadra.name,
                booking.user.get_full_name() or booking.user.username,
                booking.user.email,
                booking.date.strftime('%d/%m/%Y'),
                booking.start_time.strftime('%H:%M'),
                booking.end_time.strftime('%H:%M'),
                float(booking.total_price),
                booking.get_status_display(),
                timezone.localtime(booking.created_at).strftime('%d/%m/%Y %H:%M'),
            ])

        for column_cells in ws.columns:
            width = max(len(str(cell.value or '')) for cell in column_cells)
            ws.column_dimensions[column_cells[0].column_letter].width = width + 2

        output = BytesIO()
        wb.save(output)
        output.seek(0)

        response = HttpResponse(
            output.read(),
            content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )
        filename = f'reservas_{timezone.localdate()}.xlsx'
        response['Content-Disposition'] = f'attachment; filename={filename}'
        return response

    except Exception as e:
        logger.error(f"Error exporting bookings to Excel: {str(e)}", exc_info=True)
        return JsonResponse({
            'success': False,
            'message': 'Erro ao exportar as reservas'
        }, status=500)
