"""Tests for security validation gates — seed text, export bounds, output paths, PII stripping."""

import os

import pytest

from security import (
    ALLOWED_IMAGE_EXTENSIONS,
    ALLOWED_OUTPUT_EXTENSIONS,
    MAX_EXPORT_DIMENSION,
    MAX_FRAME_COUNT,
    strip_pii,
    validate_frame_count,
    validate_frame_size,
    validate_output_path,
    validate_seed_text,
)


@pytest.mark.smoke
class TestSeedText:
    def test_valid_seed(self):
        assert validate_seed_text("oSKNYo_dev") == []

    def test_32_chars_accepted(self):
        assert validate_seed_text("a" * 32) == []

    def test_33_chars_rejected(self):
        errors = validate_seed_text("a" * 33)
        assert any("max 32" in e for e in errors)

    def test_astral_chars_count_as_two(self):
        assert validate_seed_text("😀" * 16) == []
        errors = validate_seed_text("😀" * 17)
        assert errors == ["Seed text has 34 characters (max 32)"]

    def test_empty_rejected(self):
        assert validate_seed_text("") == ["Seed text is empty"]

    def test_nul_rejected(self):
        errors = validate_seed_text("ab\x00c")
        assert any("NUL" in e for e in errors)

    def test_non_string_rejected(self):
        errors = validate_seed_text(42)
        assert "must be a string" in errors[0]


@pytest.mark.smoke
class TestFrameCount:
    def test_valid_frame_count(self):
        assert validate_frame_count(300) == []

    def test_at_limit(self):
        assert validate_frame_count(MAX_FRAME_COUNT) == []

    def test_over_limit(self):
        errors = validate_frame_count(MAX_FRAME_COUNT + 1)
        assert any("exceeds" in e for e in errors)

    def test_zero_rejected(self):
        errors = validate_frame_count(0)
        assert any("positive" in e for e in errors)


@pytest.mark.smoke
class TestFrameSize:
    def test_valid_size(self):
        assert validate_frame_size(1280, 720) == []

    def test_odd_width_rejected(self):
        errors = validate_frame_size(1281, 720)
        assert errors == ["Frame width 1281 must be even"]

    def test_oversized_rejected(self):
        errors = validate_frame_size(MAX_EXPORT_DIMENSION + 2, 720)
        assert any("outside" in e for e in errors)

    def test_both_dimensions_reported(self):
        assert len(validate_frame_size(0, 3)) == 2


class TestOutputPath:
    def test_valid_path(self, home_tmp_path):
        assert validate_output_path(str(home_tmp_path / "out.mp4")) == []

    def test_all_video_extensions(self, home_tmp_path):
        for ext in ALLOWED_OUTPUT_EXTENSIONS:
            assert validate_output_path(str(home_tmp_path / f"out{ext}")) == []

    def test_relative_path_rejected(self):
        errors = validate_output_path("out.mp4")
        assert errors == ["Output path must be absolute"]

    def test_system_dir_rejected(self):
        errors = validate_output_path("/usr/local/out.mp4")
        assert any("system directory" in e for e in errors)

    def test_bad_extension_rejected(self, home_tmp_path):
        errors = validate_output_path(str(home_tmp_path / "out.exe"))
        assert any("not allowed" in e for e in errors)

    def test_png_only_for_images(self, home_tmp_path):
        png = str(home_tmp_path / "still.png")
        assert validate_output_path(png, ALLOWED_IMAGE_EXTENSIONS) == []
        assert validate_output_path(png) != []

    def test_missing_parent_rejected(self, home_tmp_path):
        errors = validate_output_path(str(home_tmp_path / "nope" / "out.mp4"))
        assert any("does not exist" in e for e in errors)


@pytest.mark.smoke
class TestPIIStripping:
    def test_home_path_replaced(self):
        home = os.path.expanduser("~")
        event = {"message": f"Failed to write {home}/Videos/out.mp4"}
        cleaned = strip_pii(event, {})
        assert home not in cleaned["message"]

    def test_user_paths_redacted(self):
        event = {"message": "at /home/alice/project and /Users/bob/x"}
        cleaned = strip_pii(event, {})
        assert "alice" not in cleaned["message"]
        assert "bob" not in cleaned["message"]
        assert "<REDACTED_PATH>" in cleaned["message"]

    def test_sensitive_keys_redacted(self):
        event = {
            "extra": {
                "wallet_address": "So1anaWa11et",
                "transaction_signature": "5igXyz",
                "seed_text": "my name",
                "particle_count": 25000,
            },
            "tags": {"auth_token": "abc"},
            "contexts": {"export": {"dsn": "https://key@sentry"}},
        }
        cleaned = strip_pii(event, {})
        assert cleaned["extra"]["wallet_address"] == "<REDACTED>"
        assert cleaned["extra"]["transaction_signature"] == "<REDACTED>"
        assert cleaned["extra"]["seed_text"] == "<REDACTED>"
        assert cleaned["extra"]["particle_count"] == 25000
        assert cleaned["tags"]["auth_token"] == "<REDACTED>"
        assert cleaned["contexts"]["export"]["dsn"] == "<REDACTED>"
