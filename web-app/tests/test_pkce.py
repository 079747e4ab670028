"""Tests for PKCE helpers and token lifetime arithmetic."""

import re
from unittest.mock import patch

from sso_auth.pkce import (
    calculate_expires_at,
    generate_code_challenge,
    generate_code_verifier,
    generate_state,
    is_token_expired,
    now_ms,
)

URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


class TestCodeVerifier:
    def test_is_url_safe_without_padding(self) -> None:
        verifier = generate_code_verifier()
        assert URL_SAFE.match(verifier)
        assert "=" not in verifier

    def test_carries_at_least_32_bytes_of_entropy(self) -> None:
        # 32 bytes base64url-encoded without padding is 43 characters
        assert len(generate_code_verifier()) >= 43

    def test_two_verifiers_differ(self) -> None:
        assert generate_code_verifier() != generate_code_verifier()


class TestCodeChallenge:
    def test_matches_rfc7636_example(self) -> None:
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert generate_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_is_deterministic(self) -> None:
        verifier = generate_code_verifier()
        assert generate_code_challenge(verifier) == generate_code_challenge(verifier)

    def test_differs_from_verifier(self) -> None:
        verifier = generate_code_verifier()
        challenge = generate_code_challenge(verifier)
        assert challenge != verifier
        assert URL_SAFE.match(challenge)


class TestState:
    def test_states_are_unique_and_url_safe(self) -> None:
        first, second = generate_state(), generate_state()
        assert first != second
        assert URL_SAFE.match(first)


class TestExpiry:
    def test_token_with_two_minutes_left_is_not_expired(self) -> None:
        assert is_token_expired(now_ms() + 120_000, 60) is False

    def test_token_in_the_past_is_expired(self) -> None:
        assert is_token_expired(now_ms() - 1000, 60) is True

    def test_token_inside_buffer_counts_as_expired(self) -> None:
        assert is_token_expired(now_ms() + 30_000, 60) is True

    def test_zero_buffer(self) -> None:
        assert is_token_expired(now_ms() + 30_000, 0) is False

    def test_calculate_expires_at(self) -> None:
        with patch("sso_auth.pkce.time.time", return_value=1_700_000_000.0):
            assert calculate_expires_at(3600) == 1_700_000_000_000 + 3_600_000
