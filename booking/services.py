"""
Serviços de reservas, pagamentos PIX e histórico
"""
import logging
import uuid
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from .constants import PENDING_BOOKING_EXPIRATION_MINUTES
from .models import Quadra, Booking, Payment, BookingHistory, Review
from .pix import build_pix_payload, generate_qr_code_data_url
from .utils import (
    add_minutes, check_time_conflicts, calculate_total_price, validate_booking_duration,
    validate_booking_times, validate_operating_hours,
)

logger = logging.getLogger(__name__)

EXPIRED_BOOKING_COMMENT = 'Prazo de pagamento expirado'


def display_name(user):
    return user.get_full_name() or user.username


class PaymentService:
    """Cobranças PIX das reservas"""

    @staticmethod
    def create_payment(booking):
        """
        Cria a cobrança PIX pendente da reserva
        """
        payload = build_pix_payload(booking.total_price, booking.quadra.name, display_name(booking.user))

        payment = Payment.objects.create(
            booking=booking,
            amount=booking.total_price,
            payment_method='pix',
            status='pending',
            pix_key=settings.PIX_KEY,
            payload=payload,
        )

        BookingHistoryService.create_history_entry(
            booking=booking,
            action='payment_pending',
            user=booking.user,
            changes={'amount': str(payment.amount), 'payment_method': 'pix'}
        )

        logger.info(f"PIX payment created for booking {booking.id}: R$ {payment.amount}")
        return payment

    @staticmethod
    def get_pix_charge(payment):
        """Dados que o cliente precisa para exibir a cobrança"""
        return {
            'payment_id': payment.id,
            'status': payment.status,
            'amount': str(payment.amount),
            'pix_key': payment.pix_key,
            'payload': payment.payload,
            'qr_code': generate_qr_code_data_url(payment.payload),
            'expires_at': payment.booking.expires_at().isoformat(),
        }

    @staticmethod
    def confirm_payment(payment, transaction_id=None):
        """
        Marca a cobrança como paga

        Não há liquidação real: a confirmação vem do próprio usuário.
        """
        payment.mark_as_paid(transaction_id=transaction_id or uuid.uuid4().hex)

        BookingHistoryService.create_history_entry(
            booking=payment.booking,
            action='payment_paid',
            user=payment.booking.user,
            changes={'amount': str(payment.amount), 'transaction_id': payment.transaction_id}
        )

        logger.info(f"Payment {payment.id} confirmed for booking {payment.booking_id}")
        return payment

    @staticmethod
    def refund_payment(payment):
        payment.mark_as_refunded()

        BookingHistoryService.create_history_entry(
            booking=payment.booking,
            action='payment_refunded',
            user=payment.booking.user,
            changes={'amount': str(payment.amount)}
        )

        logger.info(f"Payment {payment.id} refunded for booking {payment.booking_id}")
        return payment


class BookingHistoryService:
    """Histórico de alterações das reservas"""

    @staticmethod
    def create_history_entry(booking, action, user=None, changes=None, comment=''):
        history_entry = BookingHistory.objects.create(
            booking=booking,
            action=action,
            user=user,
            changes=changes or {},
            comment=comment
        )

        logger.debug(f"History entry created: {booking.id} - {action}")
        return history_entry

    @staticmethod
    def log_booking_created(booking, user):
        return BookingHistoryService.create_history_entry(
            booking=booking,
            action='created',
            user=user,
            changes={
                'quadra': booking.quadra.name,
                'date': booking.date.isoformat(),
                'start_time': booking.start_time.strftime('%H:%M'),
                'end_time': booking.end_time.strftime('%H:%M'),
                'price': str(booking.total_price)
            }
        )

    @staticmethod
    def log_booking_confirmed(booking, user):
        return BookingHistoryService.create_history_entry(
            booking=booking,
            action='confirmed',
            user=user,
            changes={'confirmed_at': booking.confirmed_at.isoformat() if booking.confirmed_at else ''}
        )

    @staticmethod
    def log_booking_cancelled(booking, user, reason=''):
        return BookingHistoryService.create_history_entry(
            booking=booking,
            action='cancelled',
            user=user,
            comment=reason
        )


class BookingService:
    """Criação, pagamento, cancelamento e expiração de reservas"""

    @staticmethod
    def create_booking(user, quadra, booking_date, start_time, duration_minutes, now=None):
        """
        Cria uma reserva pendente com a cobrança PIX

        Raises:
            ValidationError: dados inválidos ou horário ocupado
        """
        if not quadra.is_active:
            raise ValidationError('Quadra não encontrada ou indisponível')

        is_valid, error = validate_booking_duration(duration_minutes)
        if not is_valid:
            raise ValidationError(error)

        end_time = add_minutes(start_time, duration_minutes)
        if end_time is None:
            raise ValidationError('A reserva não pode passar da meia-noite')

        local_now = timezone.localtime(now or timezone.now())
        is_valid, error = validate_booking_times(
            booking_date, start_time, end_time, local_now.date(), local_now.time()
        )
        if not is_valid:
            raise ValidationError(error)

        is_valid, error = validate_operating_hours(quadra, booking_date, start_time, end_time)
        if not is_valid:
            raise ValidationError(error)

        with transaction.atomic():
            # serializa as reservas da quadra mesmo quando o dia está vazio
            Quadra.objects.select_for_update().only('id').get(pk=quadra.pk)

            has_conflict, conflicting = check_time_conflicts(
                quadra, booking_date, start_time, end_time, lock=True
            )
            if has_conflict:
                raise ValidationError(
                    f"Este horário já está reservado das {conflicting.start_time.strftime('%H:%M')} "
                    f"às {conflicting.end_time.strftime('%H:%M')}"
                )

            booking = Booking.objects.create(
                user=user,
                quadra=quadra,
                date=booking_date,
                start_time=start_time,
                end_time=end_time,
                total_price=calculate_total_price(quadra.price_per_hour, duration_minutes),
                status='pending',
            )
            BookingHistoryService.log_booking_created(booking, user)
            PaymentService.create_payment(booking)

        logger.info(
            f"Booking created: user {user.username} booked {quadra.name} on {booking_date} "
            f"from {start_time.strftime('%H:%M')} to {end_time.strftime('%H:%M')} "
            f"(R$ {booking.total_price})"
        )
        return booking

    @staticmethod
    def confirm_payment(booking, now=None):
        """
        Pagamento PIX confirmado pelo usuário: reserva passa a confirmada

        Se o prazo já expirou a reserva é cancelada e a confirmação recusada.
        """
        now = now or timezone.now()
        expired = False

        with transaction.atomic():
            booking = Booking.objects.select_for_update().select_related('quadra', 'user').get(pk=booking.pk)

            if booking.status != 'pending':
                if booking.status == 'cancelled' and BookingService.was_expired(booking):
                    raise ValidationError('O prazo de pagamento expirou e a reserva foi cancelada')
                raise ValidationError('Esta reserva não está aguardando pagamento')

            if booking.is_expired(now):
                BookingService.expire_booking(booking)
                expired = True
            else:
                payment = getattr(booking, 'payment', None)
                if payment is None:
                    payment = PaymentService.create_payment(booking)
                PaymentService.confirm_payment(payment)

                booking.status = 'confirmed'
                booking.confirmed_at = now
                booking.save(update_fields=['status', 'confirmed_at', 'updated_at'])
                BookingHistoryService.log_booking_confirmed(booking, booking.user)

        if expired:
            raise ValidationError('O prazo de pagamento expirou e a reserva foi cancelada')

        logger.info(f"Booking {booking.id} confirmed after PIX payment")
        return booking

    @staticmethod
    def confirm_by_owner(booking, actor):
        """Dono da quadra confirma uma reserva pendente manualmente"""
        with transaction.atomic():
            current_status = Booking.objects.select_for_update().values_list(
                'status', flat=True
            ).get(pk=booking.pk)
            if current_status != 'pending':
                raise ValidationError('Apenas reservas pendentes podem ser confirmadas')

            booking.status = 'confirmed'
            booking.confirmed_at = timezone.now()
            booking.save(update_fields=['status', 'confirmed_at', 'updated_at'])
            BookingHistoryService.log_booking_confirmed(booking, actor)

        logger.info(f"Booking {booking.id} confirmed by owner {actor.username}")
        return booking

    @staticmethod
    def cancel_booking(booking, actor, reason='', allow_past=False):
        """
        Cancela a reserva e estorna o PIX se já estava pago

        Raises:
            ValidationError: reserva já cancelada ou já iniciada
        """
        if booking.status == 'cancelled':
            raise ValidationError('Esta reserva já foi cancelada')

        if booking.is_past and not allow_past:
            raise ValidationError('Não é possível cancelar uma reserva que já começou')

        booking.status = 'cancelled'
        booking.save(update_fields=['status', 'updated_at'])

        payment = getattr(booking, 'payment', None)
        if payment is not None:
            if payment.status == 'paid':
                PaymentService.refund_payment(payment)
            elif payment.status == 'pending':
                payment.mark_as_expired()

        BookingHistoryService.log_booking_cancelled(booking, actor, reason)
        logger.info(f"Booking {booking.id} cancelled by {actor.username}")
        return booking

    @staticmethod
    def expire_booking(booking):
        """Cancela uma reserva pendente cujo prazo de pagamento venceu"""
        booking.status = 'cancelled'
        booking.save(update_fields=['status', 'updated_at'])

        payment = getattr(booking, 'payment', None)
        if payment is not None and payment.status == 'pending':
            payment.mark_as_expired()

        BookingHistoryService.log_booking_cancelled(booking, None, EXPIRED_BOOKING_COMMENT)
        return booking

    @staticmethod
    def was_expired(booking):
        """A reserva foi cancelada pelo vencimento do prazo de pagamento?"""
        return booking.history.filter(
            action='cancelled',
            user__isnull=True,
            comment=EXPIRED_BOOKING_COMMENT
        ).exists()

    @staticmethod
    def expire_if_pending(booking_id):
        """
        Relê a reserva com lock e a expira só se ainda estiver pendente

        Returns:
            True se a reserva foi cancelada
        """
        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(pk=booking_id, status='pending').first()
            if booking is None:
                return False
            BookingService.expire_booking(booking)
        return True

    @staticmethod
    def cancel_expired_pending_bookings(now=None):
        """
        Cancela todas as reservas pendentes com mais de N minutos

        Cada reserva é relida com lock: se foi paga ou confirmada pelo dono
        nesse meio tempo, fica como está.

        Returns:
            Quantidade de reservas canceladas
        """
        now = now or timezone.now()
        minutes = getattr(settings, 'PENDING_BOOKING_EXPIRATION_MINUTES', PENDING_BOOKING_EXPIRATION_MINUTES)
        threshold = now - timedelta(minutes=minutes)

        expired_ids = list(Booking.objects.filter(
            status='pending',
            created_at__lt=threshold
        ).values_list('id', flat=True))

        cancelled_count = 0
        for booking_id in expired_ids:
            try:
                if not BookingService.expire_if_pending(booking_id):
                    continue
                cancelled_count += 1
                logger.info(f"Booking {booking_id} cancelled automatically (payment expired)")
            except Exception as e:
                logger.error(f"Error cancelling expired booking {booking_id}: {str(e)}", exc_info=True)

        if cancelled_count:
            logger.info(f"{cancelled_count} pending booking(s) cancelled automatically")

        return cancelled_count


class ReviewService:
    """Avaliações das quadras"""

    @staticmethod
    def user_can_review(user, quadra):
        return Booking.objects.filter(user=user, quadra=quadra, status='confirmed').exists()

    @staticmethod
    def save_review(user, quadra, rating, comment=''):
        """
        Cria ou atualiza a avaliação do usuário e recalcula a nota da quadra

        Returns:
            (review, created)
        """
        if not ReviewService.user_can_review(user, quadra):
            raise ValidationError('Você só pode avaliar quadras onde já fez pelo menos uma reserva confirmada')

        review, created = Review.objects.update_or_create(
            quadra=quadra,
            user=user,
            defaults={'rating': rating, 'comment': comment}
        )
        quadra.recalculate_rating()

        logger.info(f"Review {'created' if created else 'updated'} for {quadra.name} by {user.username}: {rating}")
        return review, created
