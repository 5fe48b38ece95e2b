"""
Tests for command line argument handling.
"""

import pytest

from idiomcomic import cli
from idiomcomic.story_generation import AudienceClass


class TestBuildRequest:
    def test_audience_flag(self):
        args = cli.parse_args(["--idiom", "守株待兔", "--audience", "kindergarten", "--include-video"])
        request = cli.build_request(args)

        assert request.audience is AudienceClass.KINDERGARTEN
        assert request.wants_animation is True

    def test_category_and_child_level(self):
        args = cli.parse_args(["--idiom", "守株待兔", "--category", "child", "--child-level", "middle_school"])
        assert cli.build_request(args).audience is AudienceClass.MIDDLE_SCHOOL

    def test_category_without_level(self):
        args = cli.parse_args(["--idiom", "守株待兔", "--category", "child"])
        assert cli.build_request(args).audience is AudienceClass.PRIMARY_SCHOOL

    def test_request_file_with_flag_override(self, tmp_path):
        path = tmp_path / "request.yaml"
        path.write_text("idiom: 画蛇添足\naudience: adult\nlanguage: English\n", encoding="utf-8")

        args = cli.parse_args(["--request", str(path), "--audience", "senior"])
        request = cli.build_request(args)

        assert request.idiom == "画蛇添足"
        assert request.audience is AudienceClass.SENIOR
        assert request.language == "English"

    def test_idiom_or_request_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])


def test_progress_tracker_writes_messages(monkeypatch):
    messages = []
    monkeypatch.setattr(cli.tqdm, "write", messages.append)
    tracker = cli.ProgressTracker()

    tracker("Writing the story script...", 15)
    tracker("Rendering frame-by-frame animation...", None)
    tracker("Done", 100)

    assert messages[0] == "[ 15%] Writing the story script..."
    assert messages[1].strip() == "Rendering frame-by-frame animation..."
    assert tracker._bar is None


def test_main_reports_invalid_input(tmp_path):
    assert cli.main(["--idiom", "   ", "--output", str(tmp_path / "out.yaml")]) == 2
