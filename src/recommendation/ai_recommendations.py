"""
AI Tax Recommendations.

Turns a company profile, its health score and its savings analysis into a
short list of actionable recommendations. The model is reached through
OpenRouter's OpenAI-compatible API; whenever the model is unavailable or
returns nothing usable, rule-based fallback recommendations are returned
instead, so callers always get a list.
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Optional

from calculator.decimal_math import format_swiss_number
from calculator.models import CompanyProfile, HealthScore, LegalForm, SavingsAnalysis
from config.settings import AISettings
from resilience.retry import async_retry

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a Swiss tax expert providing actionable recommendations "
    "for SME tax optimization."
)

MAX_FALLBACK_RECOMMENDATIONS = 4
MIN_RECOMMENDATION_LENGTH = 10

RELOCATION_SAVINGS_THRESHOLD = 10_000
INCORPORATION_PROFIT_THRESHOLD = 100_000
VAT_REVENUE_THRESHOLD = 100_000

_NUMBERED_LINE = re.compile(r"^\d+\.\s*")


def parse_recommendations(content: str) -> List[str]:
    """
    Extract numbered recommendations ("1. ...", "2. ...") from model output.

    Lines without a number are ignored, as are entries of 10 characters or
    fewer after the number is stripped.
    """
    recommendations = []
    for line in (content or "").splitlines():
        stripped = line.strip()
        if not _NUMBERED_LINE.match(stripped):
            continue
        text = _NUMBERED_LINE.sub("", stripped, count=1).strip()
        if len(text) > MIN_RECOMMENDATION_LENGTH:
            recommendations.append(text)
    return recommendations


def fallback_recommendations(
    profile: CompanyProfile,
    savings: SavingsAnalysis,
    best_canton_name: Optional[str] = None,
) -> List[str]:
    """Rule-based recommendations used when the model is not available."""
    recommendations = []

    if savings.savings > RELOCATION_SAVINGS_THRESHOLD:
        target = best_canton_name or savings.best_canton
        recommendations.append(
            f"Canton Relocation: Consider relocating to {target} to save "
            f"CHF {format_swiss_number(savings.savings)} annually while maintaining business operations."
        )

    if profile.legal_form == LegalForm.EINZELFIRMA and profile.profit > INCORPORATION_PROFIT_THRESHOLD:
        recommendations.append(
            "Legal Structure: Convert to GmbH or AG to benefit from lower corporate tax rates "
            "and improved tax planning flexibility."
        )

    if profile.legal_form.is_incorporated:
        recommendations.append(
            "Dividend Timing: Optimize dividend distributions across tax years to minimize personal "
            "income tax impact and leverage qualified participation exemptions."
        )

    if profile.revenue > VAT_REVENUE_THRESHOLD and not profile.vat_registered:
        recommendations.append(
            "VAT Registration: Consider voluntary VAT registration to recover input VAT and improve "
            "cash flow, especially for B2B operations."
        )

    recommendations.append(
        "Tax Planning: Implement quarterly tax reviews to ensure optimal timing of expenses, "
        "depreciation strategies, and provision management."
    )

    return recommendations[:MAX_FALLBACK_RECOMMENDATIONS]


def build_prompt(
    profile: CompanyProfile,
    health: HealthScore,
    savings: SavingsAnalysis,
    best_canton_name: Optional[str] = None,
) -> str:
    issues = "\n".join(f"- {issue}" for issue in health.issues) or "- No major issues identified"
    best_name = best_canton_name or savings.best_canton

    return f"""
Analyze this Swiss company's tax situation and provide 3-5 specific, actionable recommendations:

Company Profile:
- Name: {profile.name}
- Legal Form: {profile.legal_form.value}
- Canton: {profile.canton}
- Revenue: CHF {format_swiss_number(profile.revenue)}
- Profit: CHF {format_swiss_number(profile.profit)}
- Employees: {profile.employees}
- Industry: {profile.industry or "Not specified"}

Tax Health Analysis:
- Overall Score: {health.score}/100 ({health.grade})
- Potential Savings: CHF {format_swiss_number(savings.savings)}
- Current Tax Burden: CHF {format_swiss_number(savings.current_tax)}
- Best Canton: {best_name} (CHF {format_swiss_number(savings.best_tax)})

Key Issues Identified:
{issues}

Provide specific recommendations in this format:
1. [Recommendation title]: [Specific action with expected impact]
2. [Recommendation title]: [Specific action with expected impact]
3. [Recommendation title]: [Specific action with expected impact]

Focus on: canton optimization, legal structure, timing strategies, and compliance improvements.
""".strip()


class AIRecommendationGenerator:
    """
    Generates tax recommendations with an LLM and falls back to rules.

    The OpenAI client is created lazily and only when an API key is
    configured. A client can be injected for testing.
    """

    def __init__(self, settings: Optional[AISettings] = None, client: Any = None):
        self.settings = settings or AISettings()
        self._client = client

    @property
    def client(self):
        """Lazy initialization of the OpenAI-compatible client."""
        if self._client is None and self.settings.is_configured:
            try:
                from openai import AsyncOpenAI
                self._client = AsyncOpenAI(
                    api_key=self.settings.api_key,
                    base_url=self.settings.base_url,
                    # Retries and timeouts are handled by async_retry
                    max_retries=0,
                    default_headers={
                        "HTTP-Referer": self.settings.app_url,
                        "X-Title": self.settings.app_title,
                    },
                )
            except Exception as e:
                logger.warning(f"Failed to initialize AI client: {e}")
        return self._client

    @property
    def is_available(self) -> bool:
        return self.client is not None

    async def _request_completion(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.settings.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.settings.max_tokens,
            temperature=self.settings.temperature,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def generate(
        self,
        profile: CompanyProfile,
        health: HealthScore,
        savings: SavingsAnalysis,
        best_canton_name: Optional[str] = None,
    ) -> List[str]:
        """
        Recommendations for the analyzed company.

        Never raises for provider problems: a missing key, a failed or timed
        out call, or an unparseable answer all produce the fallback list.
        """
        if not self.is_available:
            logger.debug("AI provider not configured, using fallback recommendations")
            return fallback_recommendations(profile, savings, best_canton_name)

        request = async_retry(
            max_attempts=max(1, self.settings.max_retries),
            attempt_timeout=self.settings.timeout_seconds,
        )(self._request_completion)

        try:
            content = await request(build_prompt(profile, health, savings, best_canton_name))
        except Exception as e:
            logger.warning(f"AI recommendation request failed: {e}")
            return fallback_recommendations(profile, savings, best_canton_name)

        recommendations = parse_recommendations(content)
        if not recommendations:
            logger.info("AI response contained no usable recommendations, using fallback")
            return fallback_recommendations(profile, savings, best_canton_name)

        return recommendations


# Singleton instance
_generator_instance: Optional[AIRecommendationGenerator] = None


def get_recommendation_generator() -> AIRecommendationGenerator:
    """Get or create the singleton recommendation generator."""
    global _generator_instance
    if _generator_instance is None:
        from config.settings import get_settings
        _generator_instance = AIRecommendationGenerator(get_settings().ai)
    return _generator_instance


def reset_recommendation_generator() -> None:
    """Drop the singleton so new settings take effect (used by tests)."""
    global _generator_instance
    _generator_instance = None
