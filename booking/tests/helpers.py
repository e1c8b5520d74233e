from datetime import datetime, time, timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.utils import timezone

from booking.models import Booking, Quadra
from booking.utils import calculate_total_price

PASSWORD = 'QuadraForte#2024'


def make_user(email, role='user', name='Teste Usuário'):
    first_name, _, last_name = name.partition(' ')
    user = User.objects.create_user(
        username=email,
        email=email,
        password=PASSWORD,
        first_name=first_name,
        last_name=last_name
    )
    if role != 'user':
        user.profile.role = role
        user.profile.save(update_fields=['role'])
    return user


def make_quadra(owner, name='Arena Teste', price='100.00', latitude=-23.5505, longitude=-46.6333, **kwargs):
    return Quadra.objects.create(
        owner=owner,
        name=name,
        address=kwargs.pop('address', 'Rua Teste, 100 - São Paulo'),
        latitude=latitude,
        longitude=longitude,
        price_per_hour=Decimal(price),
        **kwargs
    )


def make_booking(user, quadra, booking_date, start, end, status='confirmed'):
    booking = Booking(
        user=user,
        quadra=quadra,
        date=booking_date,
        start_time=start,
        end_time=end,
        status=status
    )
    booking.total_price = calculate_total_price(quadra.price_per_hour, booking.duration_minutes)
    booking.save()
    return booking


def future_date(days=7):
    return timezone.localdate() + timedelta(days=days)


def local_datetime(day, hour, minute=0):
    return timezone.make_aware(datetime.combine(day, time(hour, minute)))
