import json
from datetime import time, timedelta

from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from io import StringIO

from booking.models import Booking, Quadra
from booking.services import BookingService
from .helpers import make_booking, make_quadra, make_user, future_date


class QuadraViewsTests(TestCase):

    def setUp(self):
        self.owner = make_user('dono@teste.com', role='admin')
        self.centro = make_quadra(
            self.owner, name='Arena Centro', latitude=-23.5505, longitude=-46.6333,
            amenities=['Vestiário', 'Estacionamento']
        )
        self.paulista = make_quadra(
            self.owner, name='Quadra Paulista', latitude=-23.5614, longitude=-46.6559,
            address='Av. Paulista, 1000', amenities=['Bar']
        )
        self.rio = make_quadra(self.owner, name='Arena Rio', latitude=-22.9068, longitude=-43.1729)
        make_quadra(self.owner, name='Quadra Inativa', is_active=False)

    def test_list_only_active(self):
        response = self.client.get(reverse('quadras_list'))
        data = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(data['count'], 3)
        self.assertNotIn('Quadra Inativa', [quadra['name'] for quadra in data['quadras']])

    def test_list_filters(self):
        data = self.client.get(reverse('quadras_list'), {'q': 'paulista'}).json()
        self.assertEqual([quadra['name'] for quadra in data['quadras']], ['Quadra Paulista'])

        data = self.client.get(reverse('quadras_list'), {'amenity': 'vestiário'}).json()
        self.assertEqual([quadra['name'] for quadra in data['quadras']], ['Arena Centro'])

    def test_list_by_distance(self):
        params = {'lat': -23.5610, 'lng': -46.6550, 'radius_km': 20}
        data = self.client.get(reverse('quadras_list'), params).json()

        self.assertEqual([quadra['name'] for quadra in data['quadras']], ['Quadra Paulista', 'Arena Centro'])
        self.assertLess(data['quadras'][0]['distance_km'], data['quadras'][1]['distance_km'])

        response = self.client.get(reverse('quadras_list'), {'lat': 'x', 'lng': '1'})
        self.assertEqual(response.status_code, 400)

    def test_detail(self):
        response = self.client.get(reverse('quadra_detail', args=[self.centro.id]))
        data = response.json()['quadra']

        self.assertEqual(data['name'], 'Arena Centro')
        self.assertEqual(len(data['operating_hours']), 7)
        self.assertEqual(data['operating_hours']['monday'], {'open': '08:00', 'close': '22:00', 'is_open': True})
        self.assertEqual(data['reviews'], [])

        inactive = Quadra.objects.get(name='Quadra Inativa')
        self.assertEqual(self.client.get(reverse('quadra_detail', args=[inactive.id])).status_code, 404)


class SlotsViewTests(TestCase):

    def setUp(self):
        self.owner = make_user('dono@teste.com', role='admin')
        self.player = make_user('jogador@teste.com')
        self.quadra = make_quadra(self.owner)
        self.day = future_date()

    def test_requires_parameters(self):
        response = self.client.get(reverse('available_slots'), {'quadra': self.quadra.id})
        self.assertEqual(response.status_code, 400)
        self.assertIn('date', response.json()['errors'])

    def test_off_grid_duration_is_rejected(self):
        response = self.client.get(reverse('available_slots'), {
            'quadra': self.quadra.id, 'date': self.day.isoformat(), 'duration': 45
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('duration', response.json()['errors'])

    def test_past_date_is_rejected(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        response = self.client.get(reverse('available_slots'), {
            'quadra': self.quadra.id, 'date': yesterday.isoformat()
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('data passada', response.json()['message'])

    def test_slots_and_expiry_sweep(self):
        make_booking(self.player, self.quadra, self.day, time(10), time(11), status='confirmed')
        expired = make_booking(self.player, self.quadra, self.day, time(14), time(15), status='pending')
        Booking.objects.filter(id=expired.id).update(created_at=timezone.now() - timedelta(minutes=10))

        response = self.client.get(reverse('available_slots'), {
            'quadra': self.quadra.id, 'date': self.day.isoformat(), 'duration': 60
        })
        data = response.json()
        availability = {slot['start_time']: slot['is_available'] for slot in data['slots']}

        self.assertEqual(response.status_code, 200)
        self.assertFalse(availability['10:00'])
        self.assertTrue(availability['14:00'])
        self.assertEqual(data['open_time'], '08:00')
        self.assertEqual(data['total_slots'], 28)
        expired.refresh_from_db()
        self.assertEqual(expired.status, 'cancelled')


class BookingFlowViewsTests(TestCase):

    def setUp(self):
        self.owner = make_user('dono@teste.com', role='admin')
        self.player = make_user('jogador@teste.com')
        self.other = make_user('outro@teste.com')
        self.quadra = make_quadra(self.owner)
        self.day = future_date()

    def _create(self, start='10:00', duration=60):
        return self.client.post(
            reverse('create_booking'),
            data=json.dumps({
                'quadra_id': self.quadra.id,
                'date': self.day.isoformat(),
                'start_time': start,
                'duration': duration,
            }),
            content_type='application/json'
        )

    def test_create_requires_login(self):
        self.assertEqual(self._create().status_code, 401)

    def test_zero_duration_is_rejected(self):
        self.client.force_login(self.player)
        response = self._create(duration=0)

        self.assertEqual(response.status_code, 400)
        self.assertIn('duração mínima', response.json()['message'])
        self.assertFalse(Booking.objects.exists())

    def test_create_returns_booking_and_pix_charge(self):
        self.client.force_login(self.player)
        response = self._create(duration=90)
        data = response.json()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(data['booking']['status'], 'pending')
        self.assertEqual(data['booking']['end_time'], '11:30')
        self.assertEqual(data['payment']['amount'], '150.00')
        self.assertTrue(data['payment']['qr_code'].startswith('data:image/png;base64,'))
        self.assertIsNotNone(data['payment']['expires_at'])

    def test_create_conflict(self):
        self.client.force_login(self.player)
        self._create()

        self.client.force_login(self.other)
        response = self._create(start='10:30')
        self.assertEqual(response.status_code, 400)
        self.assertIn('já está reservado', response.json()['message'])

    def test_create_with_form_data(self):
        self.client.force_login(self.player)
        response = self.client.post(reverse('create_booking'), {
            'quadra_id': self.quadra.id,
            'date': self.day.isoformat(),
            'start_time': '09:00',
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['booking']['duration_minutes'], 60)

    def test_pay_and_cancel(self):
        self.client.force_login(self.player)
        booking_id = self._create().json()['booking']['id']

        response = self.client.post(reverse('pay_booking', args=[booking_id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['booking']['status'], 'confirmed')
        self.assertEqual(response.json()['booking']['payment_status'], 'paid')

        response = self.client.post(reverse('cancel_booking', args=[booking_id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['booking']['status'], 'cancelled')
        self.assertEqual(Booking.objects.get(id=booking_id).payment.status, 'refunded')

    def test_pay_after_deadline(self):
        self.client.force_login(self.player)
        booking_id = self._create().json()['booking']['id']
        Booking.objects.filter(id=booking_id).update(created_at=timezone.now() - timedelta(minutes=6))

        response = self.client.post(reverse('pay_booking', args=[booking_id]))

        self.assertEqual(response.status_code, 400)
        self.assertIn('expirou', response.json()['message'])
        self.assertEqual(Booking.objects.get(id=booking_id).status, 'cancelled')

    def test_other_users_booking_is_not_found(self):
        self.client.force_login(self.player)
        booking_id = self._create().json()['booking']['id']

        self.client.force_login(self.other)
        self.assertEqual(self.client.post(reverse('pay_booking', args=[booking_id])).status_code, 404)
        self.assertEqual(self.client.get(reverse('booking_info', args=[booking_id])).status_code, 404)

    def test_booking_info_and_my_bookings(self):
        self.client.force_login(self.player)
        booking_id = self._create().json()['booking']['id']
        self._create(start='12:00')
        BookingService.cancel_booking(Booking.objects.get(id=booking_id), self.player)

        response = self.client.get(reverse('booking_info', args=[booking_id]))
        self.assertEqual(response.json()['booking']['status'], 'cancelled')
        self.assertNotIn('payment', response.json())

        data = self.client.get(reverse('my_bookings')).json()
        self.assertEqual(len(data['bookings']), 2)
        self.assertEqual(data['counts'], {'pending': 1, 'confirmed': 0, 'cancelled': 1, 'total': 2})


class ReviewViewTests(TestCase):

    def setUp(self):
        self.owner = make_user('dono@teste.com', role='admin')
        self.player = make_user('jogador@teste.com')
        self.quadra = make_quadra(self.owner)
        self.client.force_login(self.player)

    def test_review_requires_confirmed_booking(self):
        response = self.client.post(reverse('submit_review', args=[self.quadra.id]), {'rating': 5})
        self.assertEqual(response.status_code, 403)

    def test_invalid_rating(self):
        make_booking(self.player, self.quadra, future_date(), time(10), time(11))
        response = self.client.post(reverse('submit_review', args=[self.quadra.id]), {'rating': 6})
        self.assertEqual(response.status_code, 400)

    def test_create_then_update_review(self):
        make_booking(self.player, self.quadra, future_date(), time(10), time(11))

        response = self.client.post(
            reverse('submit_review', args=[self.quadra.id]), {'rating': 4, 'comment': 'Boa'}
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['quadra_rating'], 4.0)

        response = self.client.post(reverse('submit_review', args=[self.quadra.id]), {'rating': 5})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['quadra_rating'], 5.0)

        detail = self.client.get(reverse('quadra_detail', args=[self.quadra.id])).json()
        self.assertEqual(len(detail['quadra']['reviews']), 1)
        self.assertTrue(detail['can_review'])


class ManagementCommandsTests(TestCase):

    def test_cancel_expired_bookings(self):
        owner = make_user('dono@teste.com', role='admin')
        player = make_user('jogador@teste.com')
        quadra = make_quadra(owner)
        booking = make_booking(player, quadra, future_date(), time(10), time(11), status='pending')
        Booking.objects.filter(id=booking.id).update(created_at=timezone.now() - timedelta(minutes=30))

        out = StringIO()
        call_command('cancel_expired_bookings', stdout=out)

        self.assertIn('1 reserva', out.getvalue())
        booking.refresh_from_db()
        self.assertEqual(booking.status, 'cancelled')

    def test_create_test_quadras(self):
        out = StringIO()
        call_command('create_test_quadras', stdout=out)
        call_command('create_test_quadras', stdout=out)

        self.assertEqual(Quadra.objects.count(), 4)
        owner = Quadra.objects.first().owner
        self.assertEqual(owner.profile.role, 'admin')
