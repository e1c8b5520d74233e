import json
from datetime import time, timedelta
from io import BytesIO

import openpyxl
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from booking.models import Booking, OperatingHours, Quadra
from booking.services import BookingService
from booking.tests.helpers import make_booking, make_quadra, make_user, future_date


def post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type='application/json')


class AccessTests(TestCase):

    def setUp(self):
        self.owner = make_user('dono@teste.com', role='admin')
        self.player = make_user('jogador@teste.com')

    def test_requires_login(self):
        response = self.client.get(reverse('manager:api_quadras_list'))
        self.assertEqual(response.status_code, 401)

    def test_requires_admin_role(self):
        self.client.force_login(self.player)
        response = self.client.get(reverse('manager:api_quadras_list'))
        self.assertEqual(response.status_code, 403)

    def test_other_owners_quadra_is_not_found(self):
        other_owner = make_user('outro@teste.com', role='admin')
        quadra = make_quadra(other_owner)

        self.client.force_login(self.owner)
        self.assertEqual(self.client.get(reverse('manager:api_quadra_detail', args=[quadra.id])).status_code, 404)
        self.assertEqual(
            self.client.post(reverse('manager:api_quadra_toggle', args=[quadra.id])).status_code, 404
        )


class QuadraManagementTests(TestCase):

    def setUp(self):
        self.owner = make_user('dono@teste.com', role='admin')
        self.player = make_user('jogador@teste.com')
        self.client.force_login(self.owner)

    def test_create_quadra(self):
        response = post_json(self.client, reverse('manager:api_quadra_create'), {
            'name': ' Arena Nova ',
            'address': 'Rua Nova, 10',
            'latitude': -23.55,
            'longitude': -46.63,
            'price_per_hour': '150.00',
            'photos': ['https://img.exemplo.com/1.jpg'],
            'amenities': ['Vestiário'],
        })

        self.assertEqual(response.status_code, 201)
        quadra = Quadra.objects.get(name='Arena Nova')
        self.assertEqual(quadra.owner, self.owner)
        self.assertTrue(quadra.is_active)
        self.assertEqual(quadra.amenities, ['Vestiário'])

    def test_create_validation(self):
        response = post_json(self.client, reverse('manager:api_quadra_create'), {
            'name': 'Arena',
            'address': 'Rua',
            'latitude': -23.55,
            'longitude': -46.63,
            'price_per_hour': '0',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('price_per_hour', response.json()['errors'])

        response = post_json(self.client, reverse('manager:api_quadra_create'), {
            'name': 'Arena',
            'address': 'Rua',
            'latitude': -123,
            'longitude': -46.63,
            'price_per_hour': '10',
        })
        self.assertIn('latitude', response.json()['errors'])

    def test_partial_update_and_toggle(self):
        quadra = make_quadra(self.owner, amenities=['Bar'])

        response = post_json(self.client, reverse('manager:api_quadra_update', args=[quadra.id]), {
            'price_per_hour': '175.50'
        })
        self.assertEqual(response.status_code, 200)
        quadra.refresh_from_db()
        self.assertEqual(str(quadra.price_per_hour), '175.50')
        self.assertEqual(quadra.name, 'Arena Teste')
        self.assertEqual(quadra.amenities, ['Bar'])

        response = self.client.post(reverse('manager:api_quadra_toggle', args=[quadra.id]))
        self.assertFalse(response.json()['is_active'])
        quadra.refresh_from_db()
        self.assertFalse(quadra.is_active)

    def test_list_with_stats(self):
        quadra = make_quadra(self.owner)
        make_booking(self.player, quadra, future_date(), time(10), time(11), status='confirmed')
        make_booking(self.player, quadra, future_date(), time(12), time(13), status='pending')
        make_quadra(make_user('outro@teste.com', role='admin'), name='Alheia')

        data = self.client.get(reverse('manager:api_quadras_list')).json()

        self.assertEqual(len(data['quadras']), 1)
        stats = data['quadras'][0]['stats']
        self.assertEqual(stats['bookings_total'], 2)
        self.assertEqual(stats['bookings_confirmed'], 1)
        self.assertEqual(stats['revenue'], 100.0)

    def test_delete_blocked_by_active_bookings(self):
        quadra = make_quadra(self.owner)
        booking = make_booking(self.player, quadra, future_date(), time(10), time(11))

        response = self.client.post(reverse('manager:api_quadra_delete', args=[quadra.id]))
        self.assertEqual(response.status_code, 400)

        Booking.objects.filter(id=booking.id).update(status='cancelled')
        response = self.client.post(reverse('manager:api_quadra_delete', args=[quadra.id]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Quadra.objects.filter(id=quadra.id).exists())


class OperatingHoursTests(TestCase):

    def setUp(self):
        self.owner = make_user('dono@teste.com', role='admin')
        self.quadra = make_quadra(self.owner)
        self.client.force_login(self.owner)
        self.url = reverse('manager:api_operating_hours', args=[self.quadra.id])

    def test_get_defaults(self):
        data = self.client.get(self.url).json()['operating_hours']
        self.assertEqual(len(data), 7)
        self.assertEqual(data['sunday'], {'open': '08:00', 'close': '22:00', 'is_open': True})

    def test_set_days(self):
        response = post_json(self.client, self.url, {'hours': {
            'monday': {'open': '06:00', 'close': '23:00', 'is_open': True},
            'sunday': {'is_open': False},
        }})
        self.assertEqual(response.status_code, 200)

        hours = response.json()['operating_hours']
        self.assertEqual(hours['monday'], {'open': '06:00', 'close': '23:00', 'is_open': True})
        self.assertFalse(hours['sunday']['is_open'])
        self.assertEqual(hours['tuesday']['open'], '08:00')
        self.assertIsNone(self.quadra.get_day_hours(6))

    def test_close_before_open_is_rejected(self):
        response = post_json(self.client, self.url, {'hours': {
            'monday': {'open': '20:00', 'close': '10:00', 'is_open': True},
        }})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['day'], 'monday')
        self.assertFalse(OperatingHours.objects.exists())

    def test_copy_from_one_day_to_all(self):
        post_json(self.client, self.url, {'hours': {'friday': {'open': '10:00', 'close': '18:00', 'is_open': True}}})

        response = post_json(self.client, self.url, {'copy_from': 4})
        self.assertEqual(response.status_code, 200)
        hours = response.json()['operating_hours']
        self.assertTrue(all(day == {'open': '10:00', 'close': '18:00', 'is_open': True} for day in hours.values()))
        self.assertEqual(OperatingHours.objects.filter(quadra=self.quadra).count(), 7)

        self.assertEqual(post_json(self.client, self.url, {'copy_from': 9}).status_code, 400)


class BookingManagementTests(TestCase):

    def setUp(self):
        self.owner = make_user('dono@teste.com', role='admin')
        self.player = make_user('jogador@teste.com', name='Ana Souza')
        self.quadra = make_quadra(self.owner, name='Arena Dono')
        self.other_quadra = make_quadra(make_user('outro@teste.com', role='admin'), name='Arena Alheia')
        self.day = future_date()
        self.client.force_login(self.owner)

    def test_list_filters_and_counts(self):
        make_booking(self.player, self.quadra, self.day, time(10), time(11), status='confirmed')
        make_booking(self.player, self.quadra, self.day, time(12), time(13), status='pending')
        make_booking(self.player, self.quadra, self.day, time(14), time(15), status='cancelled')
        make_booking(self.player, self.other_quadra, self.day, time(10), time(11))

        data = self.client.get(reverse('manager:api_bookings_list')).json()
        self.assertEqual(len(data['bookings']), 3)
        self.assertEqual(data['counts'], {'pending': 1, 'confirmed': 1, 'cancelled': 1, 'total': 3})

        data = self.client.get(reverse('manager:api_bookings_list'), {'status': 'pending'}).json()
        self.assertEqual([b['start_time'] for b in data['bookings']], ['12:00'])

        data = self.client.get(reverse('manager:api_bookings_list'), {'quadra': self.other_quadra.id}).json()
        self.assertEqual(data['bookings'], [])

    def test_confirm_and_cancel(self):
        booking = BookingService.create_booking(self.player, self.quadra, self.day, time(10), 60)

        response = self.client.post(reverse('manager:api_booking_confirm', args=[booking.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['booking']['status'], 'confirmed')

        response = self.client.post(reverse('manager:api_booking_confirm', args=[booking.id]))
        self.assertEqual(response.status_code, 400)

        response = self.client.post(reverse('manager:api_booking_cancel', args=[booking.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Booking.objects.get(id=booking.id).status, 'cancelled')

    def test_cannot_touch_other_owners_bookings(self):
        booking = make_booking(self.player, self.other_quadra, self.day, time(10), time(11), status='pending')
        response = self.client.post(reverse('manager:api_booking_confirm', args=[booking.id]))
        self.assertEqual(response.status_code, 404)

    def test_export_excel(self):
        make_booking(self.player, self.quadra, self.day, time(10), time(11), status='confirmed')

        response = self.client.get(reverse('manager:api_bookings_export'))
        self.assertEqual(response.status_code, 200)
        self.assertIn('spreadsheetml', response['Content-Type'])

        sheet = openpyxl.load_workbook(BytesIO(response.content)).active
        rows = list(sheet.iter_rows(values_only=True))
        self.assertEqual(rows[0][:3], ('ID', 'Quadra', 'Cliente'))
        self.assertEqual(rows[1][1], 'Arena Dono')
        self.assertEqual(rows[1][2], 'Ana Souza')
        self.assertEqual(len(rows), 2)

    def test_schedule(self):
        make_booking(self.player, self.quadra, self.day, time(10), time(11, 30), status='confirmed')
        make_booking(self.player, self.quadra, self.day, time(15), time(16), status='cancelled')

        response = self.client.get(
            reverse('manager:api_schedule', args=[self.quadra.id]), {'date': self.day.isoformat()}
        )
        data = response.json()
        occupied = [slot['start_time'] for slot in data['slots'] if slot['booking']]

        self.assertTrue(data['is_open'])
        self.assertEqual(len(data['slots']), 28)
        self.assertEqual(occupied, ['10:00', '10:30', '11:00'])
        self.assertEqual(data['bookings_count'], 1)

        response = self.client.get(reverse('manager:api_schedule', args=[self.quadra.id]), {'date': 'ontem'})
        self.assertEqual(response.status_code, 400)
