from django import forms
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction
from .models import UserProfile, AVATAR_MAX_FILE_SIZE, AVATAR_ALLOWED_EXTENSIONS
import os


def split_name(name):
    """'Maria da Silva' -> ('Maria', 'da Silva')"""
    parts = name.strip().split(' ', 1)
    first_name = parts[0]
    last_name = parts[1].strip() if len(parts) > 1 else ''
    return first_name[:150], last_name[:150]


class AvatarUploadForm(forms.Form):
    avatar = forms.ImageField(required=True)

    def clean_avatar(self):
        avatar = self.cleaned_data.get('avatar')

        if not avatar:
            raise forms.ValidationError('Selecione um arquivo para enviar')

        if avatar.size > AVATAR_MAX_FILE_SIZE:
            raise forms.ValidationError('O arquivo não pode passar de 5MB')

        ext = os.path.splitext(avatar.name)[1].lower()
        if ext not in AVATAR_ALLOWED_EXTENSIONS:
            raise forms.ValidationError('Formato de arquivo não permitido. Use JPG, PNG, GIF ou WebP')

        return avatar


class RegistrationForm(forms.Form):
    """Cadastro com e-mail como nome de usuário"""
    name = forms.CharField(
        max_length=150,
        error_messages={'required': 'O nome é obrigatório'}
    )
    email = forms.EmailField(
        error_messages={
            'required': 'O e-mail é obrigatório',
            'invalid': 'Informe um e-mail válido',
        }
    )
    password1 = forms.CharField(error_messages={'required': 'A senha é obrigatória'})
    password2 = forms.CharField(error_messages={'required': 'Confirme a senha'})
    role = forms.ChoiceField(choices=UserProfile.ROLE_CHOICES, required=False)

    def clean_name(self):
        name = self.cleaned_data.get('name', '').strip()
        if len(name) < 2:
            raise ValidationError('O nome deve ter pelo menos 2 caracteres')
        return name

    def clean_email(self):
        email = self.cleaned_data.get('email', '').strip().lower()

        if User.objects.filter(username__iexact=email).exists() or User.objects.filter(email__iexact=email).exists():
            raise ValidationError('Este e-mail já está cadastrado')

        return email

    def clean_role(self):
        return self.cleaned_data.get('role') or 'user'

    def clean(self):
        cleaned_data = super().clean()

        password1 = cleaned_data.get('password1')
        password2 = cleaned_data.get('password2')

        if password1 and password2 and password1 != password2:
            self.add_error('password2', 'As senhas não coincidem')
        elif password1:
            try:
                validate_password(password1)
            except ValidationError as e:
                self.add_error('password1', e)

        return cleaned_data

    def save(self):
        first_name, last_name = split_name(self.cleaned_data['name'])
        email = self.cleaned_data['email']

        with transaction.atomic():
            user = User.objects.create_user(
                username=email,
                email=email,
                password=self.cleaned_data['password1'],
                first_name=first_name,
                last_name=last_name
            )
            profile, _ = UserProfile.objects.get_or_create(user=user)
            profile.role = self.cleaned_data['role']
            profile.save(update_fields=['role'])

        return user


class LoginForm(forms.Form):
    email = forms.EmailField(
        error_messages={
            'required': 'Informe o e-mail',
            'invalid': 'Informe um e-mail válido',
        }
    )
    password = forms.CharField(error_messages={'required': 'Informe a senha'})

    def clean_email(self):
        return self.cleaned_data.get('email', '').strip().lower()


class ProfileUpdateForm(forms.Form):
    name = forms.CharField(
        max_length=150,
        error_messages={'required': 'O nome é obrigatório'}
    )

    def clean_name(self):
        name = self.cleaned_data.get('name', '').strip()
        if len(name) < 2:
            raise ValidationError('O nome deve ter pelo menos 2 caracteres')
        return name

    def save(self, user):
        user.first_name, user.last_name = split_name(self.cleaned_data['name'])
        user.save(update_fields=['first_name', 'last_name'])
        return user
