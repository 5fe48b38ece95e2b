"""
Tests for PipelineConfig loaders.
"""

import json
from pathlib import Path

import pytest

from idiomcomic.pipeline import PipelineConfig


class TestFromEnv:
    def test_defaults(self, monkeypatch):
        for name in (
            "IDIOMCOMIC_TEXT_MODEL",
            "LITELLM_MODEL",
            "IDIOMCOMIC_IMAGE_MODEL",
            "REPLICATE_MODEL",
            "IDIOMCOMIC_MEDIA_DIR",
        ):
            monkeypatch.delenv(name, raising=False)

        config = PipelineConfig.from_env()

        assert config.text_model == "gpt-4.1-mini"
        assert config.image_model == "black-forest-labs/flux-1.1-pro"
        assert config.max_attempts == 3
        assert config.poll_interval == 10.0
        assert config.max_poll_iterations == 60
        assert config.aspect_ratio == "1:1"

    def test_fallback_chain(self, monkeypatch):
        monkeypatch.delenv("IDIOMCOMIC_TEXT_MODEL", raising=False)
        monkeypatch.setenv("LITELLM_MODEL", "anthropic/claude-haiku")
        monkeypatch.setenv("IDIOMCOMIC_IMAGE_MODEL", "black-forest-labs/flux-schnell")
        monkeypatch.setenv("IDIOMCOMIC_MEDIA_DIR", "/tmp/idiom-media")

        config = PipelineConfig.from_env()

        assert config.text_model == "anthropic/claude-haiku"
        assert config.image_model == "black-forest-labs/flux-schnell"
        assert config.media_dir == Path("/tmp/idiom-media")

    def test_overrides_win(self):
        config = PipelineConfig.from_env(max_attempts=5)
        assert config.max_attempts == 5


class TestFromFile:
    def test_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("max_attempts: 4\nbase_delay: 0.5\nlanguage: English\nmedia_dir: out\n", encoding="utf-8")

        config = PipelineConfig.from_file(path)

        assert config.max_attempts == 4
        assert config.base_delay == 0.5
        assert config.language == "English"
        assert config.media_dir == Path("out")

    def test_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"video_model": "google/veo-3", "max_poll_iterations": 12}), encoding="utf-8")

        config = PipelineConfig.from_file(path)

        assert config.video_model == "google/veo-3"
        assert config.max_poll_iterations == 12

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown configuration key"):
            PipelineConfig.from_mapping({"max_retries": 3})

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="Unsupported"):
            PipelineConfig.from_file(path)

    def test_invalid_budget(self):
        with pytest.raises(ValueError):
            PipelineConfig.from_mapping({"max_attempts": 0})


def test_new_client_uses_fresh_credentials(credentials):
    seen = []
    config = PipelineConfig(
        credential_provider=credentials,
        backend_client_factory=lambda creds: seen.append(creds) or object(),
    )

    credentials.selected = False
    config.new_client()
    credentials.selected = True
    config.new_client()

    assert [creds.replicate_api_token for creds in seen] == [None, "r8_test"]
