import base64
import hashlib

import pytest

from grantflow.models.errors import PKCEError
from grantflow.models.security import PKCEParameters
from grantflow.primitives.pkce import (
    PKCEManager,
    create_s256_code_challenge,
    validate_code_verifier,
)
from grantflow.primitives.random import SecureTokenGenerator

# RFC 7636 Appendix B
RFC_VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
RFC_CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


class TestPKCEManager:
    def test_generate_parameters_crypto_requirements(self) -> None:
        # Arrange
        pkce_manager = PKCEManager()

        # Act
        params = pkce_manager.generate_parameters()

        # Assert RFC 7636 requirements
        assert 43 <= len(params.code_verifier) <= 128
        assert len(params.code_challenge) == 43
        assert params.code_challenge_method == "S256"

        # Verify code_challenge is base64url(sha256(code_verifier))
        expected_challenge = (
            base64.urlsafe_b64encode(
                hashlib.sha256(params.code_verifier.encode("ascii")).digest()
            )
            .decode("ascii")
            .rstrip("=")
        )
        assert params.code_challenge == expected_challenge

    def test_generate_parameters_uniqueness(self) -> None:
        # Arrange
        pkce_manager = PKCEManager()

        # Act - Generate multiple parameters
        params1 = pkce_manager.generate_parameters()
        params2 = pkce_manager.generate_parameters()

        # Assert - Each generation is unique
        assert params1.code_verifier != params2.code_verifier
        assert params1.code_challenge != params2.code_challenge

    def test_generate_parameters_uses_injected_generator(self) -> None:
        # Arrange
        generator = SecureTokenGenerator(random_bytes=lambda n: bytes(n))
        pkce_manager = PKCEManager(generator)

        # Act
        params = pkce_manager.generate_parameters()

        # Assert
        assert params.code_verifier == "A" * 43
        assert params.code_challenge == create_s256_code_challenge("A" * 43)

    def test_verifier_is_hidden_from_repr(self) -> None:
        params = PKCEManager().generate_parameters()

        assert params.code_verifier not in repr(params)

    def test_parameters_reject_plain_method(self) -> None:
        with pytest.raises(ValueError):
            PKCEParameters(
                code_verifier=RFC_VERIFIER,
                code_challenge=RFC_CHALLENGE,
                code_challenge_method="plain",
            )


class TestCodeChallenge:
    def test_matches_rfc_example(self) -> None:
        assert create_s256_code_challenge(RFC_VERIFIER) == RFC_CHALLENGE

    def test_is_deterministic(self) -> None:
        assert create_s256_code_challenge(RFC_VERIFIER) == create_s256_code_challenge(
            RFC_VERIFIER
        )

    def test_distinct_verifiers_give_distinct_challenges(self) -> None:
        # Arrange
        generator = SecureTokenGenerator()
        verifiers = {generator.generate_code_verifier() for _ in range(200)}

        # Act
        challenges = {create_s256_code_challenge(v) for v in verifiers}

        # Assert
        assert len(challenges) == len(verifiers)

    def test_challenge_has_no_padding(self) -> None:
        assert "=" not in create_s256_code_challenge(RFC_VERIFIER)

    def test_accepts_full_unreserved_alphabet(self) -> None:
        verifier = "abcXYZ0123456789-._~" * 3

        challenge = create_s256_code_challenge(verifier)

        assert len(challenge) == 43


class TestValidateCodeVerifier:
    @pytest.mark.parametrize("length", [43, 128])
    def test_accepts_boundary_lengths(self, length: int) -> None:
        validate_code_verifier("a" * length)

    @pytest.mark.parametrize("length", [0, 42, 129])
    def test_rejects_out_of_range_lengths(self, length: int) -> None:
        with pytest.raises(PKCEError):
            validate_code_verifier("a" * length)

    @pytest.mark.parametrize("bad_char", ["+", "/", "=", " ", "%", "é"])
    def test_rejects_characters_outside_alphabet(self, bad_char: str) -> None:
        with pytest.raises(PKCEError):
            validate_code_verifier("a" * 42 + bad_char)

    def test_challenge_builder_validates_before_hashing(self) -> None:
        with pytest.raises(PKCEError):
            create_s256_code_challenge("too-short")
