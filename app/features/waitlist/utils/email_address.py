from email_validator import EmailNotValidError, validate_email

from app.platform.exceptions import InvalidEmailError


def validate_email_address(raw: str) -> str:
    """
    Check that `raw` is a local@domain.tld address and return it normalised.

    Only syntax is checked; no DNS lookup is made. The result is lower-cased
    so it can be used directly as the case-insensitive waiting list key.

    Raises:
        InvalidEmailError: if the address is empty or malformed
    """
    if not raw or not isinstance(raw, str):
        raise InvalidEmailError()

    try:
        result = validate_email(raw.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise InvalidEmailError() from e

    return result.normalized.lower()


def mask_email(email: str) -> str:
    """alice@example.com -> a***e@example.com"""
    local, _, domain = email.partition("@")
    if len(local) <= 2:
        masked = local[:1] + "***"
    else:
        masked = f"{local[0]}***{local[-1]}"
    return f"{masked}@{domain}"
