import secrets
import string

ALPHABET = string.ascii_letters + string.digits


def generate_referral_code(length: int = 10) -> str:
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))


def build_referral_link(base_url: str, referral_code: str) -> str:
    """Shareable landing page URL, e.g. https://maxmove.de/?ref=Ab3dE5fG7h"""
    return f"{base_url.rstrip('/')}/?ref={referral_code}"
