# tests/core/test_security_helpers.py
"""Tests for base64url, random code and PKCE helpers."""

import pytest

from steam_oidc.core.security import (
    b64url_decode,
    b64url_encode,
    generate_code,
    pkce_s256,
    safe_compare,
)


def test_b64url_encode_is_unpadded_and_url_safe():
    assert b64url_encode(b"\xfb\xff") == "-_8"


def test_b64url_decode_accepts_unpadded_input():
    assert b64url_decode("-_8") == b"\xfb\xff"


@pytest.mark.parametrize("value", ["-_9", "ab+c", "ab/c", "a", "abc="])
def test_b64url_decode_rejects_non_canonical_input(value):
    with pytest.raises(ValueError):
        b64url_decode(value)


def test_generated_codes_carry_256_bits():
    code = generate_code()
    # 32 random bytes encode to 43 unpadded base64url characters.
    assert len(code) == 43
    assert generate_code() != code


def test_safe_compare():
    assert safe_compare("secret", "secret")
    assert not safe_compare("secret", "Secret")
    assert not safe_compare("secret", "secret-longer")


def test_pkce_s256_matches_rfc7636_example():
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
    assert pkce_s256(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"
