"""
Constantes do app booking
"""
from datetime import time as dt_time

# Horário padrão quando a quadra não configurou o dia
DEFAULT_OPEN_TIME = dt_time(8, 0)  # 08:00
DEFAULT_CLOSE_TIME = dt_time(22, 0)  # 22:00

# Grade de horários
SLOT_STEP_MINUTES = 30

# Limites de duração da reserva (em minutos)
MIN_BOOKING_DURATION_MINUTES = 60
MAX_BOOKING_DURATION_MINUTES = 240
BOOKING_DURATION_STEP_MINUTES = 30

# Reserva pendente sem pagamento PIX expira depois disso (ver settings)
PENDING_BOOKING_EXPIRATION_MINUTES = 5

# Status que ocupam a quadra
ACTIVE_BOOKING_STATUSES = ('pending', 'confirmed')

# Dias da semana no formato do Python (segunda = 0)
WEEKDAYS = [
    (0, 'Segunda-feira'),
    (1, 'Terça-feira'),
    (2, 'Quarta-feira'),
    (3, 'Quinta-feira'),
    (4, 'Sexta-feira'),
    (5, 'Sábado'),
    (6, 'Domingo'),
]

WEEKDAY_KEYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']

# Avaliações
MIN_REVIEW_RATING = 1
MAX_REVIEW_RATING = 5

