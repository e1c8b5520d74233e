"""
Conversão dos modelos para dicts das respostas JSON
"""


def quadra_to_dict(quadra, distance_km=None):
    data = {
        'id': quadra.id,
        'name': quadra.name,
        'description': quadra.description,
        'address': quadra.address,
        'coordinates': {'lat': quadra.latitude, 'lng': quadra.longitude},
        'price_per_hour': float(quadra.price_per_hour),
        'photos': list(quadra.photos or []),
        'amenities': list(quadra.amenities or []),
        'rating': float(quadra.rating),
        'is_active': quadra.is_active,
        'owner_id': quadra.owner_id,
    }
    if distance_km is not None:
        data['distance_km'] = round(distance_km, 2)
    return data


def review_to_dict(review):
    return {
        'id': review.id,
        'quadra_id': review.quadra_id,
        'user_id': review.user_id,
        'user_name': review.user.get_full_name() or review.user.username,
        'rating': review.rating,
        'comment': review.comment,
        'created_at': review.created_at.isoformat(),
        'updated_at': review.updated_at.isoformat(),
    }


def booking_to_dict(booking):
    payment = getattr(booking, 'payment', None)
    return {
        'id': booking.id,
        'quadra_id': booking.quadra_id,
        'quadra_name': booking.quadra.name,
        'user_id': booking.user_id,
        'user_name': booking.user.get_full_name() or booking.user.username,
        'date': booking.date.isoformat(),
        'date_formatted': booking.date.strftime('%d/%m/%Y'),
        'start_time': booking.start_time.strftime('%H:%M'),
        'end_time': booking.end_time.strftime('%H:%M'),
        'duration_minutes': booking.duration_minutes,
        'total_price': float(booking.total_price),
        'status': booking.status,
        'status_display': booking.get_status_display(),
        'payment_status': payment.status if payment else None,
        'created_at': booking.created_at.isoformat(),
        'confirmed_at': booking.confirmed_at.isoformat() if booking.confirmed_at else None,
        'expires_at': booking.expires_at().isoformat() if booking.status == 'pending' else None,
        'can_cancel': booking.can_cancel,
    }
