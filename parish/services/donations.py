"""
Chapel donation return pages.

The payment provider redirects back with ?donation=success&session_id=...;
its webhook has already stored the donation, so the success page only looks
it up. Contact details and the thanks message are admin-editable settings.
"""
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Dict, Optional
from urllib.parse import quote
import logging
import re

from parish.models import Donation, SystemSetting

logger = logging.getLogger(__name__)

THANKS_MESSAGE_KEY = "capela_donation_thanks_message"
DEFAULT_THANKS_MESSAGE = (
    "Muito obrigado pela sua generosidade! Sua doação será fundamental "
    "para a preservação da Capela São Miguel."
)

DEFAULT_CONTACT_INFO = {
    "capela_phone": "(11) 2032-4160",
    "capela_whatsapp": "11999999999",
    "capela_email": "doacoes@catedralsaomiguel.com.br",
}

WHATSAPP_HELP_MESSAGE = (
    "Olá! Tive um problema ao tentar fazer uma doação para a Capela São Miguel. Podem me ajudar?"
)
EMAIL_HELP_SUBJECT = "Problema com Doação - Capela São Miguel"
EMAIL_HELP_BODY = (
    "Olá,\n\nTive um problema ao tentar fazer uma doação para a Capela São Miguel. "
    "Podem me ajudar?\n\nObrigado!"
)

CURRENCY_SYMBOLS = {"BRL": "R$", "USD": "US$", "EUR": "€"}


async def get_donation_by_session(db: AsyncSession, session_id: str) -> Optional[Donation]:
    result = await db.execute(select(Donation).where(Donation.stripe_session_id == session_id))
    return result.scalar_one_or_none()


async def _get_settings(db: AsyncSession, *keys: str) -> Dict[str, str]:
    result = await db.execute(select(SystemSetting).where(SystemSetting.key.in_(keys)))
    return {row.key: row.value for row in result.scalars()}


async def get_thanks_message(db: AsyncSession) -> str:
    try:
        values = await _get_settings(db, THANKS_MESSAGE_KEY)
    except Exception as e:
        logger.error(f"Error fetching thanks message: {str(e)}", exc_info=True)
        return DEFAULT_THANKS_MESSAGE
    return values.get(THANKS_MESSAGE_KEY) or DEFAULT_THANKS_MESSAGE


async def get_donation_contact_info(db: AsyncSession) -> Dict[str, str]:
    """Phone, WhatsApp and e-mail shown on the donation error page."""
    try:
        values = await _get_settings(db, *DEFAULT_CONTACT_INFO)
    except Exception as e:
        logger.error(f"Error fetching contact info: {str(e)}", exc_info=True)
        values = {}

    phone = values.get("capela_phone") or DEFAULT_CONTACT_INFO["capela_phone"]
    whatsapp = values.get("capela_whatsapp") or DEFAULT_CONTACT_INFO["capela_whatsapp"]
    email = values.get("capela_email") or DEFAULT_CONTACT_INFO["capela_email"]

    return {
        "phone": phone,
        "whatsapp": whatsapp,
        "email": email,
        "whatsapp_url": f"https://wa.me/55{re.sub(r'[^0-9]', '', whatsapp)}?text={quote(WHATSAPP_HELP_MESSAGE)}",
        "email_url": f"mailto:{email}?subject={quote(EMAIL_HELP_SUBJECT)}&body={quote(EMAIL_HELP_BODY)}",
    }


def format_currency(amount, currency: str) -> str:
    """Format an amount the pt-BR way: R$ 1.234,56"""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, cents = f"{abs(value):.2f}".split(".")
    grouped = f"{int(whole):,}".replace(",", ".")
    code = (currency or "").upper()
    symbol = CURRENCY_SYMBOLS.get(code, code)
    return f"{sign}{symbol} {grouped},{cents}"


def receipt_filename(donation: Donation) -> str:
    return f"comprovante-doacao-{donation.id[:8]}.txt"


def build_receipt(donation: Donation) -> str:
    """Plain-text receipt offered for download on the success page."""
    lines = [
        "COMPROVANTE DE DOAÇÃO",
        "Capela São Miguel Arcanjo",
        "",
        f"Data: {donation.created_at.strftime('%d/%m/%Y')}",
        f"Valor: {format_currency(donation.amount, donation.currency)}",
    ]
    if donation.donor_name:
        lines.append(f"Doador: {donation.donor_name}")
    if donation.donation_purpose:
        lines.append(f"Finalidade: {donation.donation_purpose}")
    if donation.message:
        lines.append(f"Mensagem: {donation.message}")
    lines += [
        "",
        f"ID da Transação: {donation.id}",
        f"Status: {donation.status}",
        "",
        "Obrigado pela sua contribuição!",
        "Capela São Miguel Arcanjo",
    ]
    return "\n".join(lines)
