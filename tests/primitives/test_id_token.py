"""Tests for unverified identity token payload decoding."""

import base64
import json

import pytest
from pydantic import BaseModel

from grantflow.models.errors import TokenDecodeError
from grantflow.primitives.id_token import decode_id_token


def b64url(value: object) -> str:
    raw = value if isinstance(value, bytes) else json.dumps(value).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def make_token(payload: object, header: object = None) -> str:
    header = {"alg": "RS256", "typ": "JWT"} if header is None else header
    return f"{b64url(header)}.{b64url(payload)}.signature"


class Claims(BaseModel):
    sub: str
    email: str | None = None


class TestDecodeIdToken:
    def test_returns_payload_claims(self) -> None:
        # Arrange
        token = f"{b64url({})}.{b64url({'email': 'a@b.com'})}.sig"

        # Act
        claims = decode_id_token(token)

        # Assert
        assert claims == {"email": "a@b.com"}

    def test_decodes_unpadded_payloads_of_any_length(self) -> None:
        for name in ["a", "ab", "abc", "abcd"]:
            token = make_token({"sub": "123", "name": name})

            assert decode_id_token(token)["name"] == name

    def test_decodes_non_ascii_claims(self) -> None:
        token = make_token({"sub": "1", "name": "Zoë ???>>>"})

        assert decode_id_token(token)["name"] == "Zoë ???>>>"

    def test_does_not_verify_signature(self) -> None:
        token = make_token({"sub": "1"}).rsplit(".", 1)[0] + ".not-a-real-signature"

        assert decode_id_token(token) == {"sub": "1"}

    def test_validator_shapes_claims(self) -> None:
        token = make_token({"sub": "user-1", "email": "a@b.com", "iss": "x"})

        claims = decode_id_token(token, Claims.model_validate)

        assert isinstance(claims, Claims)
        assert claims.sub == "user-1"
        assert claims.email == "a@b.com"


class TestDecodeIdTokenErrors:
    def test_two_segments(self) -> None:
        with pytest.raises(TokenDecodeError):
            decode_id_token(f"{b64url({})}.{b64url({'email': 'a@b.com'})}")

    def test_four_segments(self) -> None:
        with pytest.raises(TokenDecodeError):
            decode_id_token(make_token({"sub": "1"}) + ".extra")

    def test_invalid_base64url(self) -> None:
        with pytest.raises(TokenDecodeError):
            decode_id_token(f"{b64url({})}.!!!.sig")

    def test_impossible_base64_length(self) -> None:
        with pytest.raises(TokenDecodeError):
            decode_id_token(f"{b64url({})}.abcde.sig")

    def test_invalid_json(self) -> None:
        with pytest.raises(TokenDecodeError):
            decode_id_token(f"{b64url({})}.{b64url(b'not json')}.sig")

    def test_invalid_utf8(self) -> None:
        payload = b64url(b"\xff\xfe")

        with pytest.raises(TokenDecodeError):
            decode_id_token(f"{b64url({})}.{payload}.sig")

    def test_payload_must_be_object(self) -> None:
        with pytest.raises(TokenDecodeError):
            decode_id_token(make_token([1, 2, 3]))

    def test_validator_failure(self) -> None:
        token = make_token({"email": "a@b.com"})

        with pytest.raises(TokenDecodeError):
            decode_id_token(token, Claims.model_validate)

    def test_standard_base64_alphabet_rejected(self) -> None:
        with pytest.raises(TokenDecodeError):
            decode_id_token(f"{b64url({})}.eyJhIjoiPz8/In0.sig")
