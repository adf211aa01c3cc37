import pytest

from app.features.waitlist.utils.email_address import mask_email, validate_email_address
from app.features.waitlist.utils.referral_code_generator import (
    ALPHABET,
    build_referral_link,
    generate_referral_code,
)
from app.platform.exceptions import InvalidEmailError


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("a@x.com", "a@x.com"),
        ("  Alice@Example.COM ", "alice@example.com"),
        ("first.last+tag@mail.maxmove.de", "first.last+tag@mail.maxmove.de"),
    ],
)
def test_validate_email_accepts(raw, expected):
    assert validate_email_address(raw) == expected


@pytest.mark.parametrize("raw", ["", "not-an-email", "a@", "@x.com", "a@x", "a b@x.com", None])
def test_validate_email_rejects(raw):
    with pytest.raises(InvalidEmailError):
        validate_email_address(raw)


def test_mask_email():
    assert mask_email("alice@example.com") == "a***e@example.com"
    assert mask_email("al@example.com") == "a***@example.com"


def test_referral_code_shape():
    code = generate_referral_code()
    assert len(code) == 10
    assert set(code) <= set(ALPHABET)
    assert len(generate_referral_code(16)) == 16


def test_referral_codes_differ():
    codes = {generate_referral_code() for _ in range(1000)}
    assert len(codes) == 1000


def test_build_referral_link():
    assert build_referral_link("https://maxmove.de/", "Ab3") == "https://maxmove.de/?ref=Ab3"
