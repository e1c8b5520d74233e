"""
Cobrança PIX simulada: payload e QR Code
"""
import base64
import io
import json
from decimal import Decimal

import qrcode
from django.conf import settings
from django.core.exceptions import ValidationError


def build_pix_payload(amount, quadra_name, user_name):
    """
    Monta o payload da cobrança (formato simplificado, sem padrão EMV)

    Args:
        amount: Valor da reserva
        quadra_name: Nome da quadra
        user_name: Nome de quem reservou

    Returns:
        String JSON com chave, valor, descrição e recebedor
    """
    try:
        amount = Decimal(amount)
    except (TypeError, ValueError, ArithmeticError):
        raise ValidationError('Valor inválido para pagamento')

    if amount <= 0:
        raise ValidationError('Valor inválido para pagamento')

    if not quadra_name or not user_name:
        raise ValidationError('Dados da reserva incompletos')

    return json.dumps({
        'chave': settings.PIX_KEY,
        'valor': f"{amount:.2f}",
        'descricao': f"Reserva - {quadra_name} - {user_name}",
        'merchant': settings.PIX_MERCHANT_NAME,
    }, ensure_ascii=False)


def generate_qr_code_data_url(payload):
    """QR Code PNG do payload como data URL"""
    qr = qrcode.QRCode(version=1, box_size=10, border=2)
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode()

    return f"data:image/png;base64,{encoded}"
