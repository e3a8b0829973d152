"""Tests for scoring a resume version against its job description."""

import asyncio
import json
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from applytrack.exceptions import (
    ConfigurationError,
    GenerationError,
    NotFoundError,
    QuotaExceededError,
    RateLimitError,
    ValidationError,
)
from applytrack.services import version_store
from applytrack.services.cooldown import ANALYZE, GENERATE, CooldownLimiter
from applytrack.services.fit_analyzer import analyze_resume_fit, clamp_score, parse_analysis
from factories import FakeClock, FakeGenerator, make_application, make_user

DOC = json.dumps({"name": "Jane Doe", "summary": "Engineer.", "skills": ["Python"]})


def reply(score, breakdown=None, suggestions="Mention SQL."):
    return "```json\n" + json.dumps({
        "matchScore": score,
        "scoreBreakdown": breakdown or {"skills": score},
        "suggestions": suggestions,
    }) + "\n```"


def no_cooldown() -> CooldownLimiter:
    return CooldownLimiter({GENERATE: 0, ANALYZE: 0})


@pytest.fixture
def stored(db):
    user = make_user(db)
    app = make_application(db, user)
    version = version_store.create_version(db, user.id, app.id, DOC)
    return user, app, version


def analyze(db, user, app, version, generator, cooldown=None):
    return asyncio.run(analyze_resume_fit(
        db, user.id, app.id, version.id, generator=generator, cooldown=cooldown or no_cooldown(),
    ))


class TestAnalyzeOverwrite:
    """One analysis slot per version."""

    def test_second_analysis_replaces_first(self, db, stored):
        user, app, version = stored
        limiter = no_cooldown()
        analyze(db, user, app, version, FakeGenerator(reply=reply(40, {"skills": 40, "keywords": 30}, "Add SQL")), limiter)
        result = analyze(db, user, app, version, FakeGenerator(reply=reply(85, {"skills": 90}, "Quantify impact")), limiter)

        stored_result = version_store.read_analysis(version_store.get_version(db, user.id, version.id))
        assert stored_result == result
        assert stored_result.match_score == 85
        assert stored_result.score_breakdown == {"skills": 90}
        assert stored_result.suggestions == "Quantify impact"

    def test_prompt_contains_resume_and_job(self, db, stored):
        user, app, version = stored
        generator = FakeGenerator(reply=reply(50))
        analyze(db, user, app, version, generator)

        payload = json.loads(generator.calls[0][1])
        assert payload["jobDescription"] == "Python, FastAPI and SQL on AWS."
        assert payload["resume"]["name"] == "Jane Doe"


class TestAnalyzeFailures:
    def test_version_of_other_application(self, db, stored):
        user, _, version = stored
        other = make_application(db, user, title="Other role")
        with pytest.raises(NotFoundError):
            analyze(db, user, other, version, FakeGenerator(reply=reply(50)))

    def test_missing_description(self, db):
        user = make_user(db)
        app = make_application(db, user, description="")
        version = version_store.create_version(db, user.id, app.id, DOC)
        with pytest.raises(ValidationError):
            analyze(db, user, app, version, FakeGenerator(reply=reply(50)))

    def test_bad_json_leaves_slot_empty(self, db, stored):
        user, app, version = stored
        with pytest.raises(GenerationError):
            analyze(db, user, app, version, FakeGenerator(reply="I think it is a good fit."))
        assert version_store.read_analysis(version) is None

    def test_quota_is_surfaced(self, db, stored):
        user, app, version = stored
        with pytest.raises(QuotaExceededError):
            analyze(db, user, app, version, FakeGenerator(error=QuotaExceededError("429", status_code=429)))

    def test_unconfigured(self, db, stored):
        user, app, version = stored
        with pytest.raises(ConfigurationError):
            analyze(db, user, app, version, FakeGenerator(configured=False))

    def test_cooldown_applies_after_success_only(self, db, stored):
        user, app, version = stored
        limiter = CooldownLimiter({GENERATE: 60, ANALYZE: 60}, clock=FakeClock())

        with pytest.raises(GenerationError):
            analyze(db, user, app, version, FakeGenerator(reply="nope"), limiter)
        analyze(db, user, app, version, FakeGenerator(reply=reply(70)), limiter)
        with pytest.raises(RateLimitError):
            analyze(db, user, app, version, FakeGenerator(reply=reply(70)), limiter)


class TestParseAnalysis:
    """Model output normalization."""

    def test_scores_clamped(self):
        result = parse_analysis(json.dumps({
            "matchScore": 130, "scoreBreakdown": {"skills": -5, "experience": "72.6"}, "suggestions": "x",
        }))
        assert result.match_score == 100
        assert result.score_breakdown == {"skills": 0, "experience": 73}

    def test_list_suggestions_joined(self):
        result = parse_analysis(json.dumps({"matchScore": 50, "suggestions": ["Add SQL", " ", "Use metrics"]}))
        assert result.suggestions == "Add SQL\nUse metrics"
        assert result.score_breakdown == {}

    def test_missing_score(self):
        with pytest.raises(GenerationError, match="matchScore"):
            parse_analysis('{"suggestions": "x"}')

    def test_breakdown_must_be_object(self):
        with pytest.raises(GenerationError):
            parse_analysis('{"matchScore": 10, "scoreBreakdown": [1, 2]}')

    @pytest.mark.parametrize("value", ["high", None, [], float("inf")])
    def test_clamp_rejects_non_numbers(self, value):
        with pytest.raises(GenerationError):
            clamp_score(value)
