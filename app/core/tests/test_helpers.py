"""
Tests for core/helpers.py.

This module tests:
- generate_numeric_code width and leading digit
- generate_unique_code collision retries and exhaustion
"""

import pytest

from core.exceptions import ConflictError
from core.helpers import MAX_CODE_ATTEMPTS, generate_numeric_code, generate_unique_code

from chat.models import Group


class TestGenerateNumericCode:
    @pytest.mark.parametrize("length", [1, 4, 6])
    def test_fixed_width_without_leading_zero(self, length):
        for _ in range(50):
            code = generate_numeric_code(length)

            assert len(code) == length
            assert code.isdigit()
            assert code[0] != "0"

    def test_default_width_from_settings(self, settings):
        settings.CHAT_IDENTITY_CODE_LENGTH = 6

        assert len(generate_numeric_code()) == 6


@pytest.mark.django_db
class TestGenerateUniqueCode:
    def test_skips_codes_in_use(self, mocker):
        Group.objects.create(code="1111", name="Taken")
        mocker.patch("core.helpers.generate_numeric_code", side_effect=["1111", "2222"])

        assert generate_unique_code(Group) == "2222"

    def test_exhaustion_raises_conflict(self, mocker):
        Group.objects.create(code="1111", name="Taken")
        draw = mocker.patch("core.helpers.generate_numeric_code", return_value="1111")

        with pytest.raises(ConflictError) as exc_info:
            generate_unique_code(Group)

        assert exc_info.value.error_code == "CODE_SPACE_EXHAUSTED"
        assert draw.call_count == MAX_CODE_ATTEMPTS
