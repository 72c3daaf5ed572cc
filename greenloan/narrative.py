"""
Optional narrative service client.

Sends the local analysis context to an OpenAI-compatible chat completions
endpoint and validates the JSON assessment it returns. Every failure is
logged and reported as ``None`` so the caller keeps the local result.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests
from pydantic import Field, ValidationError

from greenloan.config import Settings
from greenloan.constants import Recommendation
from greenloan.models import (
    Application,
    FrozenModel,
    GLPVerdict,
    GreenwashingAssessment,
    SemanticAnalysis,
    TaxonomyVerdict,
)

logger = logging.getLogger(__name__)

JSON_OBJECT = re.compile(r'\{[\s\S]*\}')

SYSTEM_PROMPT = """You are an expert Green Finance Analyst specializing in LMA Green Loan Principles and EU Taxonomy compliance.

SEMANTIC ANALYSIS CONTEXT:
- Primary Category Match: {category} ({similarity}% similarity)
- Semantic Green Score: {semantic_score}/100
- Specificity Bonus: {specificity_bonus}
- Quantified Metrics Found: {metrics}

COMPLIANCE CONTEXT:
- LMA GLP Score: {glp_score}/100 ({glp_status})
- EU Taxonomy: {taxonomy_status} (Score: {taxonomy_score})
- Greenwashing Risk: {risk_level}
- Eligible Categories: {categories}

TASK: Provide final assessment integrating all analyses. Be specific about risks and gaps.

OUTPUT: Return ONLY valid JSON with these exact keys:
{{
  "green_score": <integer 0-100, should generally align with semantic + compliance>,
  "risk_score": <integer 0-100>,
  "recommendation": <"APPROVE"|"APPROVE_WITH_CONDITIONS"|"MANUAL_REVIEW"|"REJECT">,
  "roi_projection": <float 0.0-15.0>,
  "key_strengths": [<list of specific strengths>],
  "key_risks": [<list of specific risk factors>],
  "reasoning_summary": <2-3 sentence executive summary>,
  "detailed_reasoning": {{<optional per-topic notes>}}
}}"""


class NarrativeServiceError(RuntimeError):
    """The narrative service did not return a usable assessment."""


class NarrativeResponse(FrozenModel):
    green_score: int = Field(ge=0, le=100)
    risk_score: int = Field(ge=0, le=100)
    recommendation: Recommendation
    roi_projection: float = Field(ge=0.0, le=15.0)
    key_strengths: List[str] = []
    key_risks: List[str] = []
    reasoning_summary: str = ''
    detailed_reasoning: Optional[Dict[str, Any]] = None


def build_prompt(semantic: SemanticAnalysis, glp: GLPVerdict, taxonomy: TaxonomyVerdict,
                 greenwashing: GreenwashingAssessment) -> str:
    primary = semantic.primary_category
    return SYSTEM_PROMPT.format(
        category=primary.category if primary else 'None',
        similarity=round((primary.similarity if primary else 0.0) * 100),
        semantic_score=semantic.semantic_score,
        specificity_bonus=semantic.specificity_bonus,
        metrics=', '.join(semantic.quantified_metrics) or 'None',
        glp_score=glp.overall_score,
        glp_status='Compliant' if glp.compliant else 'Not Compliant',
        taxonomy_status='Eligible' if taxonomy.eligible else 'Not Eligible',
        taxonomy_score=taxonomy.overall_score,
        risk_level=greenwashing.risk_level.value,
        categories=', '.join(glp.eligible_categories) or 'None identified',
    )


def parse_response(content: str) -> NarrativeResponse:
    """Pull the JSON object out of a chat message and validate it."""
    match = JSON_OBJECT.search(content or '')
    if not match:
        raise NarrativeServiceError('No valid JSON in response')
    try:
        return NarrativeResponse.model_validate(json.loads(match.group(0)))
    except (ValueError, ValidationError) as e:
        raise NarrativeServiceError(f"Malformed assessment: {e}") from e


class NarrativeClient:
    """Chat completions client with a hard timeout and no retries."""

    def __init__(self, api_key: str, url: str, model: str = 'deepseek-chat', timeout: float = 15.0):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional['NarrativeClient']:
        if not settings.narrative_enabled:
            return None
        return cls(settings.api_key, settings.chat_url, settings.model, settings.timeout)

    def request(self, application: Application, prompt: str) -> NarrativeResponse:
        try:
            response = requests.post(
                self.url,
                json={
                    'model': self.model,
                    'messages': [
                        {'role': 'system', 'content': prompt},
                        {'role': 'user', 'content': json.dumps({
                            'applicant': application.applicant_name,
                            'amount': application.amount,
                            'purpose': application.purpose,
                        })},
                    ],
                    'temperature': 0.2,
                    'max_tokens': 800,
                },
                headers={'Authorization': f'Bearer {self.api_key}', 'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
            response.raise_for_status()
            content = response.json()['choices'][0]['message']['content']
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
            raise NarrativeServiceError(f"Narrative request failed: {e}") from e
        return parse_response(content)

    def assess(self, application: Application, semantic: SemanticAnalysis, glp: GLPVerdict,
               taxonomy: TaxonomyVerdict, greenwashing: GreenwashingAssessment) -> Optional[NarrativeResponse]:
        """Remote assessment, or None when the service fails in any way."""
        try:
            return self.request(application, build_prompt(semantic, glp, taxonomy, greenwashing))
        except NarrativeServiceError as e:
            logger.warning("Narrative service unavailable, using local assessment: %s", e)
            return None
