"""
Utilitários do módulo de reservas: grade de horários, conflitos e validações
"""
import json
import math
from decimal import Decimal, ROUND_HALF_UP
from datetime import date, datetime, timedelta

from django.core.exceptions import ValidationError
from django.utils import timezone

from .constants import (
    SLOT_STEP_MINUTES, MIN_BOOKING_DURATION_MINUTES, MAX_BOOKING_DURATION_MINUTES,
    BOOKING_DURATION_STEP_MINUTES, ACTIVE_BOOKING_STATUSES,
)

_BASE_DATE = date(2000, 1, 1)
EARTH_RADIUS_KM = 6371.0


def intervals_overlap(start_a, end_a, start_b, end_b):
    """
    Intervalos semiabertos [start, end) se sobrepõem?

    Intervalos que apenas se encostam (end_a == start_b) não conflitam.
    """
    return start_a < end_b and start_b < end_a


def add_minutes(value, minutes):
    """
    Soma minutos a um time

    Returns:
        time resultante ou None se passar da meia-noite
    """
    result = datetime.combine(_BASE_DATE, value) + timedelta(minutes=minutes)
    if result.date() != _BASE_DATE:
        return None
    return result.time()


def generate_time_slots(open_time, close_time, step_minutes=SLOT_STEP_MINUTES):
    """Horários de início a cada step_minutes, de open_time até antes de close_time"""
    slots = []
    current = open_time
    while current is not None and current < close_time:
        slots.append(current)
        current = add_minutes(current, step_minutes)
    return slots


def get_active_bookings(quadra, booking_date, exclude_booking_id=None, lock=False):
    """Reservas pendentes/confirmadas que ocupam a quadra no dia"""
    from .models import Booking

    bookings = Booking.objects.filter(
        quadra=quadra,
        date=booking_date,
        status__in=ACTIVE_BOOKING_STATUSES
    )
    if lock:
        bookings = bookings.select_for_update()
    if exclude_booking_id:
        bookings = bookings.exclude(id=exclude_booking_id)
    return bookings.order_by('start_time')


def check_time_conflicts(quadra, booking_date, start_time, end_time, exclude_booking_id=None, lock=False):
    """
    Verifica conflito com reservas existentes

    Args:
        quadra: Quadra
        booking_date: Data da reserva
        start_time: Início
        end_time: Fim
        exclude_booking_id: ID a ignorar (edição)
        lock: Usar select_for_update (dentro de transaction.atomic)

    Returns:
        (has_conflict, conflicting_booking)
    """
    for booking in get_active_bookings(quadra, booking_date, exclude_booking_id, lock):
        if intervals_overlap(start_time, end_time, booking.start_time, booking.end_time):
            return True, booking

    return False, None


def validate_booking_times(booking_date, start_time, end_time, today, current_time):
    """
    Validação de data e horário

    Returns:
        (is_valid, error_message)
    """
    if booking_date < today:
        return False, "Não é possível reservar em uma data passada"

    if booking_date == today and start_time <= current_time:
        return False, "Não é possível reservar um horário que já passou"

    if end_time is None or end_time <= start_time:
        return False, "O horário de término deve ser depois do início"

    return True, None


def validate_booking_duration(duration_minutes):
    """
    Duração entre 1h e 4h, em passos de 30 minutos

    Returns:
        (is_valid, error_message)
    """
    if duration_minutes < MIN_BOOKING_DURATION_MINUTES:
        return False, f"A duração mínima da reserva é de {format_duration(MIN_BOOKING_DURATION_MINUTES)}"

    if duration_minutes > MAX_BOOKING_DURATION_MINUTES:
        return False, f"A duração máxima da reserva é de {format_duration(MAX_BOOKING_DURATION_MINUTES)}"

    if duration_minutes % BOOKING_DURATION_STEP_MINUTES:
        return False, f"A duração deve ser múltipla de {BOOKING_DURATION_STEP_MINUTES} minutos"

    return True, None


def validate_operating_hours(quadra, booking_date, start_time, end_time):
    """
    A reserva cabe no horário de funcionamento do dia?

    Returns:
        (is_valid, error_message)
    """
    day_hours = quadra.get_day_hours(booking_date.weekday())
    if day_hours is None:
        return False, "A quadra não funciona neste dia"

    open_time, close_time = day_hours
    if start_time < open_time or end_time > close_time:
        return False, (
            f"Reservas disponíveis das {open_time.strftime('%H:%M')} "
            f"às {close_time.strftime('%H:%M')}"
        )

    return True, None


def get_time_slots(quadra, booking_date, duration_minutes=SLOT_STEP_MINUTES, now=None):
    """
    Grade do dia com a disponibilidade de cada horário de início

    Um início s está livre quando [s, s + duração) cabe antes do fechamento,
    não se sobrepõe a nenhuma reserva pendente/confirmada e, se a data é
    hoje, s ainda não passou.

    Returns:
        lista de dicts {start_time, end_time, is_available}; vazia se a quadra fecha no dia

    Raises:
        ValidationError: data anterior a hoje
    """
    local_now = timezone.localtime(now or timezone.now())
    if booking_date < local_now.date():
        raise ValidationError('Não é possível reservar em uma data passada')

    day_hours = quadra.get_day_hours(booking_date.weekday())
    if day_hours is None:
        return []

    open_time, close_time = day_hours
    is_today = booking_date == local_now.date()

    occupied = [
        (booking.start_time, booking.end_time)
        for booking in get_active_bookings(quadra, booking_date)
    ]

    slots = []
    for start in generate_time_slots(open_time, close_time):
        end = add_minutes(start, duration_minutes)
        is_available = end is not None and end <= close_time

        if is_available and is_today and start <= local_now.time():
            is_available = False

        if is_available:
            is_available = not any(
                intervals_overlap(start, end, busy_start, busy_end)
                for busy_start, busy_end in occupied
            )

        slots.append({
            'start_time': start.strftime('%H:%M'),
            'end_time': end.strftime('%H:%M') if end else None,
            'is_available': is_available,
        })

    return slots


def calculate_total_price(price_per_hour, duration_minutes):
    """Preço por hora vezes a duração, arredondado em centavos"""
    total = Decimal(price_per_hour) * Decimal(duration_minutes) / Decimal(60)
    return total.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def format_duration(minutes):
    """Duração por extenso ("1 hora", "1h 30min", "2 horas")"""
    hours, rest = divmod(int(minutes), 60)
    if rest and hours:
        return f"{hours}h {rest:02d}min"
    if rest:
        return f"{rest} minutos"
    if hours == 1:
        return "1 hora"
    return f"{hours} horas"


def haversine_km(lat1, lng1, lat2, lng2):
    """Distância em km entre dois pontos (lat/lng em graus)"""
    lat1, lng1, lat2, lng2 = map(math.radians, (float(lat1), float(lng1), float(lat2), float(lng2)))
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def get_request_data(request):
    """Dados do corpo: JSON quando enviado como JSON, senão o formulário"""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
    return request.POST


def form_error_response_data(form, default_message):
    """Erros do formulário no formato que o front-end espera"""
    errors = {}
    for field, error_list in form.errors.items():
        errors[field] = [str(error) for error in error_list]

    first_error = ''
    if errors:
        first_field = list(errors.keys())[0]
        if errors[first_field]:
            first_error = errors[first_field][0]

    return {
        'success': False,
        'errors': errors,
        'message': first_error or default_message
    }
