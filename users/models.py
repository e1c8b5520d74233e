from django.db import models
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.core.files.base import ContentFile
from PIL import Image, UnidentifiedImageError
import io
import os
import uuid
import logging

logger = logging.getLogger(__name__)

AVATAR_SIZE = (300, 300)
AVATAR_MAX_FILE_SIZE = 5 * 1024 * 1024
AVATAR_ALLOWED_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.gif', '.webp']


class UserProfile(models.Model):
    ROLE_CHOICES = [
        ('user', 'Usuário'),
        ('admin', 'Administrador'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='user', verbose_name='Papel')
    avatar = models.ImageField(upload_to='avatars/', null=True, blank=True, verbose_name='Avatar')
    created_at = models.DateTimeField(auto_now_add=True, verbose_name='Data de cadastro')

    def __str__(self):
        return f"{self.user.username} ({self.role})"

    def save_avatar(self, image_file):
        """Salva o avatar recortado em quadrado, 300x300, JPEG"""
        filename = image_file.name.lower()
        if not any(filename.endswith(ext) for ext in AVATAR_ALLOWED_EXTENSIONS):
            raise ValidationError('Formato de arquivo não permitido. Use JPG, PNG, GIF ou WebP')

        if image_file.size > AVATAR_MAX_FILE_SIZE:
            raise ValidationError(
                f'Arquivo muito grande. Tamanho máximo: {AVATAR_MAX_FILE_SIZE // 1024 // 1024}MB'
            )

        try:
            img = Image.open(image_file)
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationError(f'Erro ao processar a imagem: {str(e)}')

        if img.mode != 'RGB':
            img = img.convert('RGB')

        # Recorte central em quadrado
        width, height = img.size
        min_size = min(width, height)
        left = (width - min_size) // 2
        top = (height - min_size) // 2
        img = img.crop((left, top, left + min_size, top + min_size))
        img = img.resize(AVATAR_SIZE, Image.Resampling.LANCZOS)

        buffer = io.BytesIO()
        img.save(buffer, format='JPEG', quality=85)
        buffer.seek(0)

        self._remove_avatar_file()
        new_filename = f'avatar_{self.user_id}_{uuid.uuid4().hex[:8]}.jpg'
        self.avatar.save(new_filename, ContentFile(buffer.read()), save=True)
        logger.info(f"Avatar saved for user {self.user.username}")
        return True

    def get_avatar_url(self):
        if self.avatar:
            return self.avatar.url
        return None

    def delete_avatar(self):
        """Remove o avatar; False se não havia avatar"""
        if not self.avatar:
            return False

        self._remove_avatar_file()
        self.avatar = None
        self.save(update_fields=['avatar'])
        return True

    def _remove_avatar_file(self):
        if self.avatar:
            path = self.avatar.path
            if os.path.exists(path):
                os.remove(path)
