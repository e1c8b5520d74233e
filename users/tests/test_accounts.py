import io
import json

from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.urls import reverse
from PIL import Image

from booking.tests.helpers import PASSWORD, make_user
from users.models import UserProfile
from users.utils import is_quadra_admin


def image_upload(name='foto.png', size=(400, 200), fmt='PNG'):
    buffer = io.BytesIO()
    Image.new('RGB', size, color=(30, 120, 60)).save(buffer, format=fmt)
    return SimpleUploadedFile(name, buffer.getvalue(), content_type=f'image/{fmt.lower()}')


class RegistrationTests(TestCase):

    def _register(self, **overrides):
        payload = {
            'name': 'Maria da Silva',
            'email': 'Maria@Teste.com',
            'password1': PASSWORD,
            'password2': PASSWORD,
        }
        payload.update(overrides)
        return self.client.post(
            reverse('ajax_register'), data=json.dumps(payload), content_type='application/json'
        )

    def test_register_creates_user_profile_and_logs_in(self):
        response = self._register()
        data = response.json()

        self.assertEqual(response.status_code, 201)
        user = User.objects.get(username='maria@teste.com')
        self.assertEqual(user.first_name, 'Maria')
        self.assertEqual(user.last_name, 'da Silva')
        self.assertEqual(user.profile.role, 'user')
        self.assertEqual(data['user']['name'], 'Maria da Silva')

        me = self.client.get(reverse('ajax_me')).json()
        self.assertEqual(me['user']['email'], 'maria@teste.com')

    def test_register_as_admin(self):
        self._register(role='admin')
        user = User.objects.get(username='maria@teste.com')
        self.assertTrue(is_quadra_admin(user))

    def test_duplicate_email(self):
        self._register()
        self.client.logout()
        response = self._register(email='maria@teste.com')

        self.assertEqual(response.status_code, 400)
        self.assertIn('email', response.json()['errors'])

    def test_password_mismatch(self):
        response = self._register(password2='OutraSenha#2024')
        self.assertEqual(response.status_code, 400)
        self.assertIn('password2', response.json()['errors'])

    def test_weak_password(self):
        response = self._register(password1='123', password2='123')
        self.assertEqual(response.status_code, 400)
        self.assertIn('password1', response.json()['errors'])


class LoginTests(TestCase):

    def setUp(self):
        self.user = make_user('joao@teste.com', name='João Lima')

    def test_login_with_email(self):
        response = self.client.post(reverse('ajax_login'), {'email': 'JOAO@teste.com', 'password': PASSWORD})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['user']['id'], self.user.id)

    def test_wrong_password(self):
        response = self.client.post(reverse('ajax_login'), {'email': 'joao@teste.com', 'password': 'errada'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get(reverse('ajax_me')).status_code, 401)

    def test_logout(self):
        self.client.force_login(self.user)
        self.assertEqual(self.client.post(reverse('ajax_logout')).status_code, 200)
        self.assertEqual(self.client.get(reverse('ajax_me')).status_code, 401)


class ProfileTests(TestCase):

    def setUp(self):
        self.user = make_user('joao@teste.com', name='João Lima')
        self.client.force_login(self.user)

    def test_profile_created_by_signal(self):
        self.assertTrue(UserProfile.objects.filter(user=self.user, role='user').exists())
        self.assertFalse(is_quadra_admin(self.user))

    def test_update_name(self):
        response = self.client.post(reverse('ajax_update_profile'), {'name': 'João Pedro Lima'})
        self.assertEqual(response.status_code, 200)

        self.user.refresh_from_db()
        self.assertEqual(self.user.first_name, 'João')
        self.assertEqual(self.user.last_name, 'Pedro Lima')

        response = self.client.post(reverse('ajax_update_profile'), {'name': ' '})
        self.assertEqual(response.status_code, 400)

    def test_avatar_is_cropped_and_resized(self):
        response = self.client.post(reverse('ajax_upload_avatar'), {'avatar': image_upload()})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['avatar_url'])

        profile = UserProfile.objects.get(user=self.user)
        with Image.open(profile.avatar.path) as img:
            self.assertEqual(img.size, (300, 300))
            self.assertEqual(img.format, 'JPEG')

    def test_avatar_wrong_extension(self):
        response = self.client.post(
            reverse('ajax_upload_avatar'), {'avatar': image_upload(name='foto.bmp', fmt='BMP')}
        )
        self.assertEqual(response.status_code, 400)

    def test_delete_avatar(self):
        self.assertEqual(self.client.post(reverse('ajax_delete_avatar')).status_code, 400)

        self.client.post(reverse('ajax_upload_avatar'), {'avatar': image_upload()})
        response = self.client.post(reverse('ajax_delete_avatar'))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(UserProfile.objects.get(user=self.user).avatar)
