from django.core.management.base import BaseCommand

from booking.services import BookingService


class Command(BaseCommand):
    help = 'Cancela reservas pendentes cujo prazo de pagamento PIX expirou'

    def handle(self, *args, **kwargs):
        cancelled_count = BookingService.cancel_expired_pending_bookings()

        if cancelled_count:
            self.stdout.write(self.style.SUCCESS(f'{cancelled_count} reserva(s) expirada(s) cancelada(s)'))
        else:
            self.stdout.write('Nenhuma reserva expirada')
