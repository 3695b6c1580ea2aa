"""
Unit tests for the client configuration.
"""

import dataclasses

import pytest

from microget.config import (
    ClientConfig,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_HEADER_LIMIT,
    DEFAULT_READ_TIMEOUT,
)


class TestClientConfig:
    """Test ClientConfig defaults, validation and copies."""

    def test_defaults(self) -> None:
        config = ClientConfig()
        assert config.header_limit == DEFAULT_HEADER_LIMIT == 64 * 1024
        assert config.chunk_size == DEFAULT_CHUNK_SIZE == 5 * 1024 * 1024
        assert config.read_timeout == DEFAULT_READ_TIMEOUT == 300.0
        assert config.open_timeout > 0
        assert config.reject_chunked is True

    def test_immutability(self) -> None:
        config = ClientConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.read_timeout = 1.0  # type: ignore[misc]

    @pytest.mark.parametrize("field_name", [
        "open_timeout", "read_timeout", "header_limit", "chunk_size",
    ])
    def test_rejects_non_positive_values(self, field_name) -> None:
        with pytest.raises(ValueError, match=field_name):
            ClientConfig(**{field_name: 0})

    def test_with_overrides(self) -> None:
        """Test that overrides produce a new config and leave the original alone."""
        config = ClientConfig()
        fast = config.with_overrides(read_timeout=0.1, chunk_size=256)

        assert fast.read_timeout == 0.1
        assert fast.chunk_size == 256
        assert fast.header_limit == config.header_limit
        assert config.read_timeout == DEFAULT_READ_TIMEOUT

    def test_with_overrides_validates(self) -> None:
        with pytest.raises(ValueError):
            ClientConfig().with_overrides(open_timeout=-1)
