from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from booking.models import Quadra
from decimal import Decimal


class Command(BaseCommand):
    help = 'Cria um administrador e quadras de teste'

    def add_arguments(self, parser):
        parser.add_argument('--owner-email', default='dono@ondetem.com.br')
        parser.add_argument('--owner-password', default='ondetem123')

    def handle(self, *args, **kwargs):
        email = kwargs['owner_email']
        owner, created = User.objects.get_or_create(
            username=email,
            defaults={'email': email, 'first_name': 'Dono', 'last_name': 'Demo'}
        )
        if created:
            owner.set_password(kwargs['owner_password'])
            owner.save()
            self.stdout.write(self.style.SUCCESS(f'Criado administrador: {email}'))

        owner.profile.role = 'admin'
        owner.profile.save(update_fields=['role'])

        quadras = [
            {
                'name': 'Arena Society Centro',
                'description': 'Campo society com grama sintética e iluminação noturna.',
                'address': 'Rua Augusta, 1200 - Consolação, São Paulo',
                'latitude': -23.5558,
                'longitude': -46.6622,
                'price_per_hour': Decimal('180.00'),
                'amenities': ['Estacionamento', 'Vestiário', 'Iluminação'],
            },
            {
                'name': 'Quadra de Vôlei de Praia Ibirapuera',
                'description': 'Duas quadras de areia, ideais para vôlei e futevôlei.',
                'address': 'Av. Pedro Álvares Cabral - Vila Mariana, São Paulo',
                'latitude': -23.5874,
                'longitude': -46.6576,
                'price_per_hour': Decimal('120.00'),
                'amenities': ['Chuveiro', 'Bar'],
            },
            {
                'name': 'Beach Tennis Pinheiros',
                'description': 'Quadras cobertas de beach tennis com aluguel de raquetes.',
                'address': 'Rua dos Pinheiros, 500 - Pinheiros, São Paulo',
                'latitude': -23.5662,
                'longitude': -46.6838,
                'price_per_hour': Decimal('150.00'),
                'amenities': ['Coberta', 'Aluguel de equipamentos', 'Vestiário'],
            },
            {
                'name': 'Ginásio Poliesportivo Mooca',
                'description': 'Quadra coberta para futsal, basquete e vôlei.',
                'address': 'Rua da Mooca, 2500 - Mooca, São Paulo',
                'latitude': -23.5590,
                'longitude': -46.5990,
                'price_per_hour': Decimal('200.00'),
                'amenities': ['Coberta', 'Arquibancada', 'Estacionamento'],
            },
        ]

        created_count = 0
        for quadra_data in quadras:
            quadra, created = Quadra.objects.get_or_create(
                name=quadra_data['name'],
                defaults={**quadra_data, 'owner': owner, 'is_active': True}
            )

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f'Criada quadra: {quadra.name}'))
            else:
                self.stdout.write(self.style.WARNING(f'Quadra já existe: {quadra.name}'))

        self.stdout.write(self.style.SUCCESS(f'Criadas {created_count} novas quadras'))
