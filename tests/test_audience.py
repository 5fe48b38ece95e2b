"""
Tests for audience parsing and the caller-facing request object.
"""

import pytest

from idiomcomic.story_generation import AudienceClass, IdiomRequest, resolve_audience


class TestAudienceClass:
    @pytest.mark.parametrize(
        "raw",
        ["primary_school", "PRIMARY_SCHOOL", "Primary School", "primary-school", AudienceClass.PRIMARY_SCHOOL],
    )
    def test_parse_spellings(self, raw):
        assert AudienceClass.parse(raw) is AudienceClass.PRIMARY_SCHOOL

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown audience"):
            AudienceClass.parse("toddler")

    def test_only_young_audiences_are_animation_eligible(self):
        eligible = {member for member in AudienceClass if member.is_animation_eligible}
        assert eligible == {AudienceClass.KINDERGARTEN, AudienceClass.PRIMARY_SCHOOL}


class TestResolveAudience:
    def test_child_defaults_to_primary_school(self):
        assert resolve_audience("child") is AudienceClass.PRIMARY_SCHOOL

    def test_child_with_level(self):
        assert resolve_audience("child", "kindergarten") is AudienceClass.KINDERGARTEN

    def test_adult_and_senior(self):
        assert resolve_audience("adult") is AudienceClass.ADULT
        assert resolve_audience("Senior") is AudienceClass.SENIOR

    def test_child_level_must_be_a_child_audience(self):
        with pytest.raises(ValueError):
            resolve_audience("child", "senior")

    def test_unknown_category(self):
        with pytest.raises(ValueError):
            resolve_audience("robot")


class TestIdiomRequest:
    def test_blank_idiom_rejected(self):
        with pytest.raises(ValueError):
            IdiomRequest(idiom="   ")

    def test_from_mapping_with_category(self):
        request = IdiomRequest.from_mapping(
            {"idiom": "守株待兔", "category": "child", "child_level": "kindergarten", "include_video": "yes"}
        )
        assert request.audience is AudienceClass.KINDERGARTEN
        assert request.include_video is True
        assert request.wants_animation is True

    def test_senior_never_wants_animation(self):
        request = IdiomRequest(idiom="画蛇添足", audience=AudienceClass.SENIOR, include_video=True)
        assert request.wants_animation is False

    def test_defaults(self):
        request = IdiomRequest.from_mapping({"idiom": "亡羊补牢"})
        assert request.audience is AudienceClass.PRIMARY_SCHOOL
        assert request.include_video is False
        assert request.language == "Simplified Chinese"
