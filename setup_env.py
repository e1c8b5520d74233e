#!/usr/bin/env python
"""
Gera o arquivo .env a partir do .env.example com uma SECRET_KEY nova
Uso: python setup_env.py
"""
from pathlib import Path
from django.core.management.utils import get_random_secret_key

BASE_DIR = Path(__file__).resolve().parent
ENV_FILE = BASE_DIR / '.env'
ENV_EXAMPLE = BASE_DIR / '.env.example'


def create_env_file():
    """Cria o .env a partir do .env.example trocando a SECRET_KEY"""

    if ENV_FILE.exists():
        print(f"Arquivo {ENV_FILE} já existe!")
        response = input("Sobrescrever? (s/n): ")
        if response.lower() != 's':
            print("Cancelado.")
            return

    if not ENV_EXAMPLE.exists():
        print(f"Arquivo {ENV_EXAMPLE} não encontrado!")
        return

    with open(ENV_EXAMPLE, 'r', encoding='utf-8') as f:
        content = f.read()

    secret_key = get_random_secret_key()
    print(f"Nova SECRET_KEY gerada: {secret_key[:20]}...")

    lines = content.split('\n')
    for i, line in enumerate(lines):
        if line.startswith('SECRET_KEY=') and 'django-insecure' in line:
            lines[i] = f'SECRET_KEY={secret_key}'
            break

    with open(ENV_FILE, 'w', encoding='utf-8') as f:
        f.write('\n'.join(lines))

    print(f"Arquivo {ENV_FILE} criado com sucesso!")
    print("\nPara produção não esqueça de:")
    print("   - Definir DEBUG=False")
    print("   - Informar ALLOWED_HOSTS corretos")
    print("   - Trocar PIX_KEY pela chave real do recebedor")


if __name__ == '__main__':
    create_env_file()
