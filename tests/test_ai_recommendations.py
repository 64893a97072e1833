"""
Tests for AI tax recommendations.

The OpenAI client is replaced by a stub; no network calls are made.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from calculator.health_score import score_health
from calculator.models import CompanyProfile, LegalForm
from calculator.savings import analyze_savings
from config.settings import AISettings
from recommendation.ai_recommendations import (
    AIRecommendationGenerator,
    SYSTEM_PROMPT,
    build_prompt,
    fallback_recommendations,
    get_recommendation_generator,
    parse_recommendations,
)


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _stub_client(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _settings(**overrides):
    values = dict(api_key="test-key", max_retries=1, timeout_seconds=1.0)
    values.update(overrides)
    return AISettings(**values)


@pytest.fixture
def analysis(zh_profile, rate_table):
    return zh_profile, score_health(zh_profile, rate_table), analyze_savings(zh_profile, rate_table=rate_table)


class TestParseRecommendations:

    def test_keeps_numbered_lines(self):
        content = (
            "Here are my recommendations:\n"
            "1. Canton Relocation: Move to Zug to reduce municipal tax\n"
            "   2.  Dividend Timing: Spread distributions over two years\n"
            "- Not numbered: ignored entirely\n"
            "3. Too short\n"
        )
        assert parse_recommendations(content) == [
            "Canton Relocation: Move to Zug to reduce municipal tax",
            "Dividend Timing: Spread distributions over two years",
        ]

    def test_empty_content(self):
        assert parse_recommendations("") == []
        assert parse_recommendations(None) == []


class TestFallbackRecommendations:

    def test_zurich_gmbh(self, analysis):
        profile, _, savings = analysis
        recommendations = fallback_recommendations(profile, savings, "Geneva")

        assert len(recommendations) == 3
        assert recommendations[0].startswith("Canton Relocation: Consider relocating to Geneva")
        assert "CHF 12'583" in recommendations[0]
        assert recommendations[1].startswith("Dividend Timing:")
        assert recommendations[2].startswith("Tax Planning:")

    def test_sole_proprietorship_is_capped_at_four(self, rate_table):
        profile = CompanyProfile(
            name="Einzel",
            legal_form=LegalForm.EINZELFIRMA,
            canton="TI",
            revenue=800000,
            profit=200000,
            vat_registered=False,
        )
        savings = analyze_savings(profile, rate_table=rate_table)
        recommendations = fallback_recommendations(profile, savings)

        assert [r.split(":")[0] for r in recommendations] == [
            "Canton Relocation",
            "Legal Structure",
            "VAT Registration",
            "Tax Planning",
        ]
        # Without a display name the canton code is used
        assert "relocating to GE" in recommendations[0]

    def test_tax_planning_always_present(self, rate_table):
        profile = CompanyProfile(name="Small", legal_form="Kollektivgesellschaft", canton="GE",
                                 revenue=50000, profit=5000)
        savings = analyze_savings(profile, rate_table=rate_table)
        assert [r.split(":")[0] for r in fallback_recommendations(profile, savings)] == ["Tax Planning"]


class TestBuildPrompt:

    def test_contains_profile_and_analysis(self, analysis):
        profile, health, savings = analysis
        prompt = build_prompt(profile, health, savings, "Geneva")

        assert "- Canton: ZH" in prompt
        assert "- Revenue: CHF 1'200'000" in prompt
        assert "- Overall Score: 53/100 (F)" in prompt
        assert "- Best Canton: Geneva (CHF 42'221)" in prompt
        assert "- High effective tax rate compared to Swiss average" in prompt


class TestAIRecommendationGenerator:

    def test_unavailable_without_api_key(self):
        generator = AIRecommendationGenerator(AISettings(api_key=None))
        assert not generator.is_available

    @pytest.mark.asyncio
    async def test_fallback_without_api_key(self, analysis):
        profile, health, savings = analysis
        generator = AIRecommendationGenerator(AISettings(api_key=None))

        result = await generator.generate(profile, health, savings, "Geneva")
        assert result == fallback_recommendations(profile, savings, "Geneva")

    @pytest.mark.asyncio
    async def test_uses_model_response(self, analysis):
        profile, health, savings = analysis
        create = AsyncMock(return_value=_completion(
            "1. Canton Relocation: Evaluate a move to Geneva\n"
            "2. Dividend Timing: Distribute in low-income years\n"
        ))
        generator = AIRecommendationGenerator(_settings(), client=_stub_client(create))

        result = await generator.generate(profile, health, savings, "Geneva")

        assert result == [
            "Canton Relocation: Evaluate a move to Geneva",
            "Dividend Timing: Distribute in low-income years",
        ]
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "meta-llama/llama-3.1-8b-instruct:free"
        assert kwargs["max_tokens"] == 500
        assert kwargs["temperature"] == 0.7
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}

    @pytest.mark.asyncio
    async def test_unparseable_response_falls_back(self, analysis):
        profile, health, savings = analysis
        create = AsyncMock(return_value=_completion("I cannot help with that."))
        generator = AIRecommendationGenerator(_settings(), client=_stub_client(create))

        result = await generator.generate(profile, health, savings)
        assert result == fallback_recommendations(profile, savings)

    @pytest.mark.asyncio
    async def test_provider_error_falls_back(self, analysis):
        profile, health, savings = analysis
        create = AsyncMock(side_effect=RuntimeError("502 Bad Gateway"))
        generator = AIRecommendationGenerator(_settings(), client=_stub_client(create))

        result = await generator.generate(profile, health, savings)
        assert result == fallback_recommendations(profile, savings)
        assert create.await_count == 1

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self, analysis):
        profile, health, savings = analysis

        async def slow_create(**kwargs):
            await asyncio.sleep(5)
            return _completion("1. Never delivered in time, sadly")

        generator = AIRecommendationGenerator(_settings(timeout_seconds=0.05), client=_stub_client(slow_create))

        result = await generator.generate(profile, health, savings)
        assert result == fallback_recommendations(profile, savings)


def test_generator_singleton():
    assert get_recommendation_generator() is get_recommendation_generator()
