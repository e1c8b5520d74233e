from decimal import Decimal

from django import forms

from .constants import (
    MIN_BOOKING_DURATION_MINUTES, MAX_BOOKING_DURATION_MINUTES, SLOT_STEP_MINUTES,
    MIN_REVIEW_RATING, MAX_REVIEW_RATING, WEEKDAYS,
)
from .models import Quadra


class BookingRequestForm(forms.Form):
    """Pedido de reserva enviado pelo fluxo de horários"""
    quadra_id = forms.IntegerField()
    date = forms.DateField(input_formats=['%Y-%m-%d'])
    start_time = forms.TimeField(input_formats=['%H:%M'])
    duration = forms.IntegerField(
        initial=MIN_BOOKING_DURATION_MINUTES,
        required=False,
        help_text='Duração em minutos (60 a 240, de 30 em 30)'
    )

    def clean_duration(self):
        duration = self.cleaned_data.get('duration')
        if duration is None:
            return MIN_BOOKING_DURATION_MINUTES
        return duration


class SlotsQueryForm(forms.Form):
    quadra = forms.IntegerField()
    date = forms.DateField(input_formats=['%Y-%m-%d'])
    duration = forms.IntegerField(required=False, min_value=SLOT_STEP_MINUTES, max_value=MAX_BOOKING_DURATION_MINUTES)

    def clean_duration(self):
        duration = self.cleaned_data.get('duration')
        if duration is None:
            return SLOT_STEP_MINUTES
        if duration % SLOT_STEP_MINUTES:
            raise forms.ValidationError(f'A duração deve ser múltipla de {SLOT_STEP_MINUTES} minutos')
        return duration


class ReviewForm(forms.Form):
    rating = forms.IntegerField(
        min_value=MIN_REVIEW_RATING,
        max_value=MAX_REVIEW_RATING,
        error_messages={
            'min_value': 'Selecione uma avaliação de 1 a 5 estrelas',
            'max_value': 'Selecione uma avaliação de 1 a 5 estrelas',
            'required': 'Selecione uma avaliação de 1 a 5 estrelas',
        }
    )
    comment = forms.CharField(required=False, max_length=2000)


class QuadraForm(forms.ModelForm):
    """Cadastro e edição de quadra pelo dono"""
    photos = forms.JSONField(required=False)
    amenities = forms.JSONField(required=False)

    class Meta:
        model = Quadra
        fields = [
            'name', 'description', 'address', 'latitude', 'longitude',
            'price_per_hour', 'photos', 'amenities', 'is_active',
        ]
        error_messages = {
            'name': {'required': 'O nome é obrigatório'},
            'price_per_hour': {'required': 'O preço por hora é obrigatório'},
        }

    def clean_name(self):
        return self.cleaned_data.get('name', '').strip()

    def clean_price_per_hour(self):
        price = self.cleaned_data.get('price_per_hour')
        if price is not None and price <= Decimal('0'):
            raise forms.ValidationError('O preço deve ser maior que zero')
        return price

    def clean_latitude(self):
        latitude = self.cleaned_data.get('latitude')
        if latitude is not None and not -90 <= latitude <= 90:
            raise forms.ValidationError('Latitude inválida')
        return latitude

    def clean_longitude(self):
        longitude = self.cleaned_data.get('longitude')
        if longitude is not None and not -180 <= longitude <= 180:
            raise forms.ValidationError('Longitude inválida')
        return longitude

    def _clean_string_list(self, field):
        value = self.cleaned_data.get(field)
        if value in (None, ''):
            return []
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise forms.ValidationError('Informe uma lista de textos')
        return [item.strip() for item in value if item.strip()]

    def clean_photos(self):
        return self._clean_string_list('photos')

    def clean_amenities(self):
        return self._clean_string_list('amenities')


class DayHoursForm(forms.Form):
    """Horário de um dia da semana"""
    weekday = forms.TypedChoiceField(choices=WEEKDAYS, coerce=int)
    open = forms.TimeField(input_formats=['%H:%M'])
    close = forms.TimeField(input_formats=['%H:%M'])
    is_open = forms.BooleanField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        open_time = cleaned_data.get('open')
        close_time = cleaned_data.get('close')
        if cleaned_data.get('is_open') and open_time and close_time and open_time >= close_time:
            raise forms.ValidationError('O horário de fechamento deve ser depois da abertura')
        return cleaned_data
