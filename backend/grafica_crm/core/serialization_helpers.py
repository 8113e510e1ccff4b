"""
Helpers genéricos de serialização e formatação.
NÃO contém lógica de negócio, só utilidades de formato.
"""
import re
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP


def serialize_decimal(value):
    """Converte Decimal para float na serialização JSON"""
    if value is None:
        return None
    return float(value)


def serialize_datetime(value):
    """Converte date/datetime para string ISO na serialização JSON"""
    if value is None:
        return None
    return value.isoformat()


def digits_only(value):
    if not value:
        return ""
    return re.sub(r"\D", "", value)


def format_currency(value) -> str:
    """Formata em reais: 1234.5 -> 'R$ 1.234,50'"""
    amount = Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    integer, cents = f"{abs(amount):.2f}".split(".")
    groups = []
    while len(integer) > 3:
        groups.insert(0, integer[-3:])
        integer = integer[:-3]
    groups.insert(0, integer)
    return f"{sign}R$ {'.'.join(groups)},{cents}"


def format_date(value) -> str:
    """dd/mm/aaaa; '-' quando vazio; devolve a entrada se não for uma data válida"""
    if not value:
        return "-"
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    try:
        return date.fromisoformat(str(value)[:10]).strftime("%d/%m/%Y")
    except ValueError:
        return str(value)


def mask_phone(value):
    """Máscara de telefone brasileiro: (11) 99999-0000 ou (11) 3333-4444"""
    if not value:
        return value
    phone = digits_only(value)
    length = len(phone)
    if length <= 2:
        return f"({phone}" if length > 0 else ""
    if length <= 6:
        return f"({phone[:2]}) {phone[2:]}"
    if length <= 10:
        return f"({phone[:2]}) {phone[2:6]}-{phone[6:]}"
    if length == 11:
        return f"({phone[:2]}) {phone[2:7]}-{phone[7:]}"
    # Com DDI ou fora do padrão: mostra como foi cadastrado
    return value
