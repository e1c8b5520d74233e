from .models import UserProfile


def get_user_profile(user):
    """Perfil do usuário, criado na hora para contas antigas sem perfil"""
    profile, _ = UserProfile.objects.get_or_create(user=user)
    return profile


def is_quadra_admin(user):
    """Usuário com papel de administrador (dono de quadras)"""
    if not user.is_authenticated:
        return False

    return get_user_profile(user).role == 'admin'


def user_to_dict(user):
    profile = get_user_profile(user)
    return {
        'id': user.id,
        'name': user.get_full_name() or user.username,
        'email': user.email,
        'role': profile.role,
        'avatar_url': profile.get_avatar_url() or '',
        'created_at': profile.created_at.isoformat(),
    }
