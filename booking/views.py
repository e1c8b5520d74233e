from django.shortcuts import get_object_or_404
from django.http import JsonResponse
from django.views.decorators.http import require_POST, require_GET
from django.core.exceptions import ValidationError
from django.db.models import Q, Count

from .decorators import api_data_ratelimit, api_write_ratelimit, login_required_json
from .forms import BookingRequestForm, SlotsQueryForm, ReviewForm
from .models import Quadra, Booking
from .serializers import quadra_to_dict, review_to_dict, booking_to_dict
from .services import BookingService, PaymentService, ReviewService
from .utils import get_time_slots, haversine_km, get_request_data, form_error_response_data

import logging
logger = logging.getLogger(__name__)


def _error(message, status=400):
    return JsonResponse({'success': False, 'message': message}, status=status)


def _parse_float(value):
    if value in (None, ''):
        return None
    return float(value)


@require_GET
@api_data_ratelimit()
def quadras_list(request):
    """Quadras ativas para o mapa, com filtros de texto, comodidade e raio"""
    quadras = Quadra.objects.filter(is_active=True)

    query = request.GET.get('q', '').strip()
    if query:
        quadras = quadras.filter(Q(name__icontains=query) | Q(address__icontains=query))

    try:
        lat = _parse_float(request.GET.get('lat'))
        lng = _parse_float(request.GET.get('lng'))
        radius_km = _parse_float(request.GET.get('radius_km'))
    except ValueError:
        return _error('Coordenadas inválidas')

    # JSONField sem lookup "contains" no SQLite: filtra em Python
    amenity = request.GET.get('amenity', '').strip().lower()
    if amenity:
        quadras = [
            quadra for quadra in quadras
            if amenity in [item.lower() for item in quadra.amenities or []]
        ]

    if lat is not None and lng is not None:
        with_distance = []
        for quadra in quadras:
            distance = haversine_km(lat, lng, quadra.latitude, quadra.longitude)
            if radius_km is None or distance <= radius_km:
                with_distance.append((distance, quadra))
        with_distance.sort(key=lambda item: item[0])
        data = [quadra_to_dict(quadra, distance_km=distance) for distance, quadra in with_distance]
    else:
        data = [quadra_to_dict(quadra) for quadra in quadras]

    return JsonResponse({
        'success': True,
        'quadras': data,
        'count': len(data)
    })


@require_GET
@api_data_ratelimit()
def quadra_detail(request, quadra_id):
    quadra = get_object_or_404(
        Quadra.objects.prefetch_related('operating_hours'),
        id=quadra_id,
        is_active=True
    )
    reviews = quadra.reviews.select_related('user').order_by('-created_at')

    data = quadra_to_dict(quadra)
    data['operating_hours'] = quadra.get_operating_hours_table()
    data['reviews'] = [review_to_dict(review) for review in reviews]
    data['reviews_count'] = len(data['reviews'])

    can_review = False
    if request.user.is_authenticated:
        can_review = ReviewService.user_can_review(request.user, quadra)

    return JsonResponse({
        'success': True,
        'quadra': data,
        'can_review': can_review
    })


@require_GET
@api_data_ratelimit()
def get_available_slots(request):
    form = SlotsQueryForm(request.GET)
    if not form.is_valid():
        return JsonResponse(
            form_error_response_data(form, 'Informe a quadra, a data e a duração'),
            status=400
        )

    quadra = Quadra.objects.filter(id=form.cleaned_data['quadra'], is_active=True).first()
    if not quadra:
        return _error('Quadra não encontrada ou indisponível', status=404)

    booking_date = form.cleaned_data['date']
    duration = form.cleaned_data['duration']

    try:
        BookingService.cancel_expired_pending_bookings()

        slots = get_time_slots(quadra, booking_date, duration)
        day_hours = quadra.get_day_hours(booking_date.weekday())
        available_count = sum(1 for slot in slots if slot['is_available'])

        return JsonResponse({
            'success': True,
            'slots': slots,
            'is_open': day_hours is not None,
            'open_time': day_hours[0].strftime('%H:%M') if day_hours else None,
            'close_time': day_hours[1].strftime('%H:%M') if day_hours else None,
            'quadra_id': quadra.id,
            'quadra_name': quadra.name,
            'quadra_price': float(quadra.price_per_hour),
            'date': booking_date.isoformat(),
            'date_formatted': booking_date.strftime('%d/%m/%Y'),
            'duration': duration,
            'available_count': available_count,
            'total_slots': len(slots)
        })

    except ValidationError as e:
        return _error(e.messages[0])
    except Exception as e:
        logger.error(f"Error in get_available_slots: {str(e)}", exc_info=True)
        return _error('Erro ao carregar os horários', status=500)


@login_required_json
@require_POST
@api_write_ratelimit()
def create_booking(request):
    """
    Cria uma reserva pendente e devolve a cobrança PIX

    O horário só é garantido depois do pagamento, dentro do prazo.
    """
    data = get_request_data(request)
    if data is None:
        return _error('Dados inválidos')

    form = BookingRequestForm(data)
    if not form.is_valid():
        return JsonResponse(
            form_error_response_data(form, 'Todos os campos devem ser preenchidos'),
            status=400
        )

    quadra = get_object_or_404(Quadra, id=form.cleaned_data['quadra_id'], is_active=True)

    try:
        booking = BookingService.create_booking(
            user=request.user,
            quadra=quadra,
            booking_date=form.cleaned_data['date'],
            start_time=form.cleaned_data['start_time'],
            duration_minutes=form.cleaned_data['duration']
        )
    except ValidationError as e:
        return _error(e.messages[0])
    except Exception as e:
        logger.error(f"Error creating booking: {str(e)}", exc_info=True)
        return _error('Erro ao criar a reserva. Tente novamente.', status=500)

    return JsonResponse({
        'success': True,
        'message': 'Reserva criada! Pague o PIX para confirmar.',
        'booking': booking_to_dict(booking),
        'payment': PaymentService.get_pix_charge(booking.payment)
    }, status=201)


@login_required_json
@require_POST
@api_write_ratelimit()
def pay_booking(request, booking_id):
    """Confirmação simulada do PIX pelo próprio usuário"""
    booking = get_object_or_404(Booking, id=booking_id, user=request.user)

    BookingService.cancel_expired_pending_bookings()

    try:
        booking = BookingService.confirm_payment(booking)
    except ValidationError as e:
        return _error(e.messages[0])

    return JsonResponse({
        'success': True,
        'message': 'Pagamento confirmado! Sua reserva está garantida.',
        'booking': booking_to_dict(booking)
    })


@login_required_json
@require_POST
@api_write_ratelimit()
def cancel_booking(request, booking_id):
    booking = get_object_or_404(
        Booking.objects.select_related('quadra', 'user'),
        id=booking_id,
        user=request.user
    )

    data = get_request_data(request) or {}
    try:
        BookingService.cancel_booking(booking, request.user, reason=data.get('reason', ''))
    except ValidationError as e:
        return _error(e.messages[0])

    return JsonResponse({
        'success': True,
        'message': 'Reserva cancelada',
        'booking': booking_to_dict(booking)
    })


@login_required_json
@require_GET
def get_booking_info(request, booking_id):
    booking = get_object_or_404(
        Booking.objects.select_related('quadra', 'user'),
        id=booking_id,
        user=request.user
    )

    data = {'success': True, 'booking': booking_to_dict(booking)}
    payment = getattr(booking, 'payment', None)
    if booking.status == 'pending' and payment is not None:
        data['payment'] = PaymentService.get_pix_charge(payment)
    return JsonResponse(data)


@login_required_json
@require_GET
@api_data_ratelimit()
def my_bookings(request):
    bookings = Booking.objects.filter(user=request.user).select_related(
        'quadra', 'user', 'payment'
    ).order_by('-created_at')

    counts = {'pending': 0, 'confirmed': 0, 'cancelled': 0}
    for row in bookings.values('status').annotate(total=Count('id')).order_by():
        counts[row['status']] = row['total']
    counts['total'] = sum(counts.values())

    return JsonResponse({
        'success': True,
        'bookings': [booking_to_dict(booking) for booking in bookings],
        'counts': counts
    })


@login_required_json
@require_POST
@api_write_ratelimit()
def submit_review(request, quadra_id):
    quadra = get_object_or_404(Quadra, id=quadra_id)

    data = get_request_data(request)
    if data is None:
        return _error('Dados inválidos')

    form = ReviewForm(data)
    if not form.is_valid():
        return JsonResponse(form_error_response_data(form, 'Avaliação inválida'), status=400)

    try:
        review, created = ReviewService.save_review(
            request.user,
            quadra,
            form.cleaned_data['rating'],
            form.cleaned_data['comment']
        )
    except ValidationError as e:
        return _error(e.messages[0], status=403)

    quadra.refresh_from_db(fields=['rating'])
    return JsonResponse({
        'success': True,
        'message': 'Avaliação enviada!' if created else 'Avaliação atualizada!',
        'review': review_to_dict(review),
        'quadra_rating': float(quadra.rating)
    }, status=201 if created else 200)
