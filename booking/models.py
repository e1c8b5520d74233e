from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Avg
from django.utils import timezone
from datetime import datetime, timedelta

from .constants import (
    WEEKDAYS, WEEKDAY_KEYS, DEFAULT_OPEN_TIME, DEFAULT_CLOSE_TIME,
    MIN_REVIEW_RATING, MAX_REVIEW_RATING, PENDING_BOOKING_EXPIRATION_MINUTES,
)


class Quadra(models.Model):
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name='quadras', verbose_name='Dono')
    name = models.CharField(max_length=100, verbose_name='Nome')
    description = models.TextField(blank=True, default='')
    address = models.CharField(max_length=255, verbose_name='Endereço')
    latitude = models.FloatField()
    longitude = models.FloatField()
    price_per_hour = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    photos = models.JSONField(default=list, blank=True, verbose_name='Fotos (URLs)')
    amenities = models.JSONField(default=list, blank=True, verbose_name='Comodidades')
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    def get_day_hours(self, weekday):
        """
        Horário de funcionamento de um dia da semana

        Returns:
            (open_time, close_time) ou None se a quadra fecha nesse dia.
            Dia sem configuração usa 08:00-22:00.
        """
        day = None
        for hours in self.operating_hours.all():
            if hours.weekday == weekday:
                day = hours
                break

        if day is None:
            return DEFAULT_OPEN_TIME, DEFAULT_CLOSE_TIME
        if not day.is_open:
            return None
        return day.open_time, day.close_time

    def get_operating_hours_table(self):
        """Tabela completa da semana, com os valores padrão nos dias não configurados"""
        configured = {hours.weekday: hours for hours in self.operating_hours.all()}
        table = {}
        for weekday, key in enumerate(WEEKDAY_KEYS):
            hours = configured.get(weekday)
            if hours is None:
                table[key] = {
                    'open': DEFAULT_OPEN_TIME.strftime('%H:%M'),
                    'close': DEFAULT_CLOSE_TIME.strftime('%H:%M'),
                    'is_open': True,
                }
            else:
                table[key] = {
                    'open': hours.open_time.strftime('%H:%M'),
                    'close': hours.close_time.strftime('%H:%M'),
                    'is_open': hours.is_open,
                }
        return table

    def recalculate_rating(self):
        """Recalcula a nota média a partir das avaliações"""
        average = self.reviews.aggregate(avg=Avg('rating'))['avg']
        if average is None:
            self.rating = Decimal('0.00')
        else:
            self.rating = Decimal(str(average)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        self.save(update_fields=['rating', 'updated_at'])
        return self.rating


class OperatingHours(models.Model):
    quadra = models.ForeignKey(Quadra, on_delete=models.CASCADE, related_name='operating_hours')
    weekday = models.PositiveSmallIntegerField(choices=WEEKDAYS, verbose_name='Dia da semana')
    open_time = models.TimeField(default=DEFAULT_OPEN_TIME)
    close_time = models.TimeField(default=DEFAULT_CLOSE_TIME)
    is_open = models.BooleanField(default=True)

    class Meta:
        ordering = ['weekday']
        constraints = [
            models.UniqueConstraint(fields=['quadra', 'weekday'], name='unique_operating_hours_per_day'),
        ]

    def __str__(self):
        return f"{self.quadra.name} - {self.get_weekday_display()}"

    def clean(self):
        super().clean()
        if self.is_open and self.open_time >= self.close_time:
            raise ValidationError({'close_time': 'O horário de fechamento deve ser depois da abertura'})


class Booking(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pendente'),
        ('confirmed', 'Confirmada'),
        ('cancelled', 'Cancelada'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='bookings')
    quadra = models.ForeignKey(Quadra, on_delete=models.CASCADE, related_name='bookings')
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['quadra', 'date', 'status'], name='booking_quadra_date_status_idx'),
        ]

    def __str__(self):
        return f"{self.user.username} - {self.quadra.name} - {self.date}"

    @property
    def duration_minutes(self):
        start_dt = datetime.combine(self.date, self.start_time)
        end_dt = datetime.combine(self.date, self.end_time)
        return int((end_dt - start_dt).total_seconds() // 60)

    @property
    def booking_datetime(self):
        """Data e hora de início da reserva no fuso local"""
        return timezone.make_aware(datetime.combine(self.date, self.start_time))

    @property
    def is_past(self):
        return self.booking_datetime <= timezone.now()

    def expires_at(self):
        minutes = getattr(settings, 'PENDING_BOOKING_EXPIRATION_MINUTES', PENDING_BOOKING_EXPIRATION_MINUTES)
        return self.created_at + timedelta(minutes=minutes)

    def is_expired(self, now=None):
        """Reserva pendente cujo prazo de pagamento passou"""
        if self.status != 'pending':
            return False
        now = now or timezone.now()
        return now > self.expires_at()

    @property
    def can_cancel(self):
        return self.status in ('pending', 'confirmed') and not self.is_past


class Payment(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Aguardando pagamento'),
        ('paid', 'Pago'),
        ('expired', 'Expirado'),
        ('refunded', 'Estornado'),
    ]

    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, related_name='payment')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_method = models.CharField(max_length=20, default='pix')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    pix_key = models.CharField(max_length=255, blank=True, default='')
    payload = models.TextField(blank=True, default='')
    transaction_id = models.CharField(max_length=100, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"PIX {self.amount} - reserva {self.booking_id} ({self.status})"

    def mark_as_paid(self, transaction_id=None):
        self.status = 'paid'
        self.paid_at = timezone.now()
        if transaction_id:
            self.transaction_id = transaction_id
        self.save()

    def mark_as_expired(self):
        self.status = 'expired'
        self.save(update_fields=['status'])

    def mark_as_refunded(self):
        self.status = 'refunded'
        self.save(update_fields=['status'])


class BookingHistory(models.Model):
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='history')
    action = models.CharField(max_length=50)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    changes = models.JSONField(default=dict, blank=True)
    comment = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"{self.booking_id} - {self.action}"


class Review(models.Model):
    quadra = models.ForeignKey(Quadra, on_delete=models.CASCADE, related_name='reviews')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_REVIEW_RATING), MaxValueValidator(MAX_REVIEW_RATING)]
    )
    comment = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['quadra', 'user'], name='unique_review_per_user'),
        ]

    def __str__(self):
        return f"{self.user.username} - {self.quadra.name} ({self.rating})"
