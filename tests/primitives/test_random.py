import base64
import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from grantflow.models.errors import RandomSourceError
from grantflow.primitives.random import SecureTokenGenerator

URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


class TestSecureTokenGenerator:
    def test_generated_values_are_unique_and_url_safe(self) -> None:
        # Arrange
        generator = SecureTokenGenerator()

        # Act
        values = [generator.generate() for _ in range(1000)]

        # Assert
        assert len(set(values)) == len(values)
        for value in values:
            assert len(value) == 43
            assert URL_SAFE.match(value)
            decoded = base64.urlsafe_b64decode(value + "=")
            assert len(decoded) == 32

    def test_state_and_verifier_aliases_draw_fresh_values(self) -> None:
        # Arrange
        generator = SecureTokenGenerator()

        # Act
        state = generator.generate_state()
        verifier = generator.generate_code_verifier()

        # Assert
        assert state != verifier
        assert 43 <= len(verifier) <= 128

    def test_injected_source_is_deterministic(self) -> None:
        # Arrange
        generator = SecureTokenGenerator(random_bytes=lambda n: bytes(n))

        # Act / Assert
        assert generator.generate() == "A" * 43
        assert generator.generate() == "A" * 43

    def test_larger_byte_count_gives_longer_values(self) -> None:
        generator = SecureTokenGenerator(num_bytes=64)

        assert len(generator.generate()) == 86

    def test_rejects_weak_byte_count(self) -> None:
        with pytest.raises(ValueError):
            SecureTokenGenerator(num_bytes=16)

    def test_missing_random_source_is_fatal(self) -> None:
        # Arrange
        def unavailable(n: int) -> bytes:
            raise NotImplementedError("no urandom")

        generator = SecureTokenGenerator(random_bytes=unavailable)

        # Act / Assert
        with pytest.raises(RandomSourceError) as exc_info:
            generator.generate()
        assert isinstance(exc_info.value.__cause__, NotImplementedError)

    def test_short_random_output_is_fatal(self) -> None:
        generator = SecureTokenGenerator(random_bytes=lambda n: b"\x01" * (n - 1))

        with pytest.raises(RandomSourceError):
            generator.generate()

    def test_concurrent_generation_does_not_repeat(self) -> None:
        # Arrange
        generator = SecureTokenGenerator()

        # Act
        with ThreadPoolExecutor(max_workers=8) as pool:
            values = list(pool.map(lambda _: generator.generate(), range(500)))

        # Assert
        assert len(set(values)) == 500
