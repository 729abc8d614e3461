"""Unit tests for invite code generation helpers."""

from unittest.mock import AsyncMock

import pytest

from rebate_core.config.constants import INVITE_CODE_ALPHABET
from rebate_core.services.invite_code_registry import (
    InviteCodeRegistry,
    InviterInfo,
    fallback_invite_code,
    normalize_invite_code,
    random_invite_code,
)
from rebate_core.utils.exceptions import InviteCodeGenerationError


class TestCodeHelpers:
    """Test pure code helpers."""

    def test_alphabet_has_no_ambiguous_characters(self):
        """0, 1, i, l and o are excluded."""
        for char in "01ilo":
            assert char not in INVITE_CODE_ALPHABET

    def test_random_code_length_and_alphabet(self):
        """Random codes use only the alphabet."""
        for length in (4, 6, 12):
            code = random_invite_code(length)
            assert len(code) == length
            assert set(code) <= set(INVITE_CODE_ALPHABET)

    @pytest.mark.parametrize("length", [1, 2, 4, 6, 10, 11, 12, 20, 32])
    def test_fallback_code_length(self, length):
        """Fallback codes keep the requested length, even past the timestamp width."""
        assert len(fallback_invite_code(length)) == length

    def test_long_fallback_code_pads_from_alphabet(self):
        """Characters beyond the timestamp come from the alphabet."""
        code = fallback_invite_code(32)

        assert set(code[-20:]) <= set(INVITE_CODE_ALPHABET)

    def test_normalize(self):
        """Codes are trimmed and lower-cased."""
        assert normalize_invite_code("  AbC23x ") == "abc23x"
        assert normalize_invite_code(None) == ""


class TestInviterInfo:
    """Test invite capacity."""

    @pytest.mark.parametrize(
        "limit,used,expected",
        [(0, 100, True), (3, 2, True), (3, 3, False), (3, 5, False)],
    )
    def test_has_capacity(self, limit, used, expected):
        """Zero limit is unlimited, otherwise used must stay below it."""
        assert InviterInfo(id=1, invite_limit=limit, invite_used=used).has_capacity is expected


class TestGenerateUniqueCode:
    """Test collision handling with a mocked repository."""

    @pytest.mark.asyncio
    async def test_returns_first_free_code(self, mock_session):
        """Stops at the first unused candidate."""
        registry = InviteCodeRegistry(mock_session, max_attempts=5)
        registry.user_repo.invite_code_exists = AsyncMock(side_effect=[True, True, False])

        code = await registry.generate_unique_code(6)

        assert len(code) == 6
        assert registry.user_repo.invite_code_exists.await_count == 3

    @pytest.mark.asyncio
    async def test_falls_back_after_attempts(self, mock_session):
        """After max_attempts collisions the timestamp code is checked once."""
        registry = InviteCodeRegistry(mock_session, max_attempts=3)
        registry.user_repo.invite_code_exists = AsyncMock(
            side_effect=[True, True, True, False]
        )

        code = await registry.generate_unique_code(6)

        assert len(code) == 6
        assert registry.user_repo.invite_code_exists.await_count == 4

    @pytest.mark.asyncio
    async def test_raises_when_fallback_collides(self, mock_session):
        """A colliding fallback is an error, never a duplicate code."""
        registry = InviteCodeRegistry(mock_session, max_attempts=2)
        registry.user_repo.invite_code_exists = AsyncMock(return_value=True)

        with pytest.raises(InviteCodeGenerationError):
            await registry.generate_unique_code(6)

    @pytest.mark.asyncio
    async def test_long_length_falls_back_to_full_width(self, mock_session):
        """A fallback for a 20-character request is 20 characters."""
        registry = InviteCodeRegistry(mock_session, max_attempts=1)
        registry.user_repo.invite_code_exists = AsyncMock(side_effect=[True, False])

        code = await registry.generate_unique_code(20)

        assert len(code) == 20

    @pytest.mark.asyncio
    async def test_rejects_non_positive_length(self, mock_session):
        """Length must be positive."""
        registry = InviteCodeRegistry(mock_session)

        with pytest.raises(ValueError):
            await registry.generate_unique_code(0)
