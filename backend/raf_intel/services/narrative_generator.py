"""Optional LLM narrative enrichment for the executive chat.

The chat layer always produces a deterministic answer. When a narrative
generator is configured, it is asked to reword that answer using a compact
summary of the dataset. The generator talks to any OpenAI-compatible
``/chat/completions`` endpoint over httpx and must return a JSON object.

Enrichment is strictly optional: ``generate_narrative_safely`` converts every
failure (missing credential, transport error, timeout, malformed JSON) into
``None`` so callers fall back to the deterministic text.
"""

import asyncio
from collections import Counter
from dataclasses import dataclass, field
import json
import logging
from typing import Any, Protocol

import httpx

from raf_intel.core.config import settings
from raf_intel.core.snapshot import DataSnapshot

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an Executive Risk Intelligence assistant for a health insurer. You answer "
    "questions about members, claims, risk adjustment (RAF), and revenue in natural language. "
    "You have been given a summary of the current dataset (members and claims). Use only the "
    "provided data to answer. Be concise and evidence-based. Do not diagnose or make coding "
    "assertions. If the data does not support an answer, say so. Respond with a JSON object "
    "only, no markdown, with exactly these keys:\n"
    "- shortAnswer: one or two sentences, executive summary\n"
    "- evidence: array of 3-5 short bullet strings with numbers where possible\n"
    "- whyItMatters: array of 1-3 short strings (business impact)\n"
    "- recommendedAction: one short sentence\n"
    "- followUpSuggestions: array of 2-4 suggested follow-up questions the user might ask"
)

FALLBACK_SHORT_ANSWER = "I couldn't generate a clear answer from the data."
FALLBACK_ACTION = "Review the data in the Dashboard or Member Explorer for more detail."

HIGH_RAF_THRESHOLD = 1.2
HIGH_RISK_THRESHOLD = 0.7
TOP_STATES = 15


class NarrativeGenerationError(Exception):
    """Raised when narrative enrichment cannot produce a usable result."""


# ============================================================================
# Data Classes
# ============================================================================


@dataclass
class DataContextSummary:
    """Compact dataset description handed to the language model."""

    total_members: int
    total_claims: int
    total_allowed: float
    avg_cost_per_member: float
    by_state: list[tuple[str, int]]
    by_plan: list[tuple[str, int]]
    claim_types: dict[str, int]
    avg_raf: float
    high_raf_count: int
    high_risk_count: int
    chronic_count: int
    hcc_prevalence: list[tuple[str, int]]


@dataclass
class Narrative:
    """Narrative fields of a chat answer."""

    short_answer: str
    evidence: list[str] = field(default_factory=list)
    why_it_matters: list[str] = field(default_factory=list)
    recommended_action: str = ""
    follow_up_suggestions: list[str] = field(default_factory=list)


class NarrativeGenerator(Protocol):
    """Anything that can turn a question plus context into a Narrative."""

    async def generate(
        self,
        question: str,
        summary: DataContextSummary,
        precomputed: Narrative | None = None,
    ) -> Narrative: ...


# ============================================================================
# Context
# ============================================================================


def build_data_context_summary(snapshot: DataSnapshot) -> DataContextSummary:
    """Summarize the snapshot for the prompt."""
    members = snapshot.members
    total_members = len(members)
    total_allowed = sum(c.allowed_amount for c in snapshot.claims)

    by_state = Counter(m.state or "Unknown" for m in members)
    by_plan = Counter(m.plan_type.value for m in members)
    claim_types = {"IP": 0, "OP": 0, "RX": 0}
    for claim in snapshot.claims:
        claim_types[claim.claim_type.value] += 1

    raf_values = [snapshot.raf_for(m.member_id) for m in members]
    hcc_counts = Counter(code for m in members for code in m.hcc_codes)

    return DataContextSummary(
        total_members=total_members,
        total_claims=len(snapshot.claims),
        total_allowed=round(total_allowed, 2),
        avg_cost_per_member=round(total_allowed / total_members, 2) if total_members else 0.0,
        by_state=by_state.most_common(TOP_STATES),
        by_plan=list(by_plan.items()),
        claim_types=claim_types,
        avg_raf=round(sum(raf_values) / total_members, 3) if total_members else 0.0,
        high_raf_count=sum(1 for raf in raf_values if raf > HIGH_RAF_THRESHOLD),
        high_risk_count=sum(1 for m in members if m.risk_score >= HIGH_RISK_THRESHOLD),
        chronic_count=sum(1 for m in members if m.chronic_condition_flag),
        hcc_prevalence=hcc_counts.most_common(),
    )


def _pairs(items: list[tuple[str, int]]) -> str:
    return ", ".join(f"{key}: {count}" for key, count in items)


def format_context(summary: DataContextSummary, precomputed: Narrative | None = None) -> str:
    """Render the summary (and any deterministic answer) as prompt text."""
    lines = [
        "## Dataset summary",
        f"- Total members: {summary.total_members}",
        f"- Total claims: {summary.total_claims}",
        f"- Total allowed amount: ${summary.total_allowed:,.2f}",
        f"- Avg cost per member: ${summary.avg_cost_per_member:,.2f}",
        f"- Avg RAF: {summary.avg_raf}",
        f"- Members with RAF > {HIGH_RAF_THRESHOLD}: {summary.high_raf_count}",
        f"- High-risk members (risk_score >= {HIGH_RISK_THRESHOLD}): {summary.high_risk_count}",
        f"- Members with chronic condition flag: {summary.chronic_count}",
        "",
        f"Members by state (top {TOP_STATES}): {_pairs(summary.by_state) or 'N/A'}",
        f"Members by plan: {_pairs(summary.by_plan) or 'N/A'}",
        "Claims by type: "
        + ", ".join(f"{kind}={count}" for kind, count in summary.claim_types.items()),
        f"HCC prevalence (coded): {_pairs(summary.hcc_prevalence) or 'None'}",
    ]
    if precomputed is not None and precomputed.short_answer:
        lines += [
            "",
            "## Pre-computed analysis (use these numbers if relevant)",
            f"- Short answer: {precomputed.short_answer}",
            f"- Evidence: {'; '.join(precomputed.evidence)}",
            f"- Why it matters: {'; '.join(precomputed.why_it_matters)}",
        ]
    return "\n".join(lines)


def _as_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)] if value else []


def parse_narrative(content: str) -> Narrative:
    """Parse the model's JSON object into a Narrative.

    Raises:
        NarrativeGenerationError: If the content is empty or not a JSON object.
    """
    if not content or not content.strip():
        raise NarrativeGenerationError("Empty LLM response")
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise NarrativeGenerationError("LLM did not return valid JSON") from e
    if not isinstance(parsed, dict):
        raise NarrativeGenerationError("LLM response is not a JSON object")

    return Narrative(
        short_answer=parsed.get("shortAnswer") or FALLBACK_SHORT_ANSWER,
        evidence=_as_list(parsed.get("evidence")),
        why_it_matters=_as_list(parsed.get("whyItMatters")),
        recommended_action=parsed.get("recommendedAction") or FALLBACK_ACTION,
        follow_up_suggestions=_as_list(parsed.get("followUpSuggestions")),
    )


# ============================================================================
# OpenAI-compatible Generator
# ============================================================================


class OpenAINarrativeGenerator:
    """Narrative generator backed by an OpenAI-compatible chat completions API."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the generator.

        Args:
            api_key: Bearer credential. Calls fail when it is missing.
            base_url: API root, without the ``/chat/completions`` suffix.
            model: Model name sent with every request.
            timeout: httpx client timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "OpenAINarrativeGenerator":
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            timeout=settings.narrative_timeout_seconds,
        )

    def _build_payload(self, user_content: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_content},
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0.3,
            "max_tokens": 1024,
        }

    async def generate(
        self,
        question: str,
        summary: DataContextSummary,
        precomputed: Narrative | None = None,
    ) -> Narrative:
        """Ask the model for a narrative answer.

        Raises:
            NarrativeGenerationError: On missing credential, HTTP failure or
                an unusable response body.
        """
        if not self.api_key:
            raise NarrativeGenerationError("OPENAI_API_KEY is not set")

        user_content = f"{format_context(summary, precomputed)}\n\n## User question\n{question}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post("/chat/completions", json=self._build_payload(user_content))
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                raise NarrativeGenerationError(
                    f"LLM API error: {e.response.status_code} {e.response.text}"
                ) from e
            except httpx.HTTPError as e:
                raise NarrativeGenerationError(f"LLM transport error: {e}") from e
            except ValueError as e:
                raise NarrativeGenerationError("LLM API returned a non-JSON body") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise NarrativeGenerationError("LLM response has no message content") from e
        return parse_narrative(content)


async def generate_narrative_safely(
    generator: NarrativeGenerator,
    question: str,
    summary: DataContextSummary,
    precomputed: Narrative | None = None,
    timeout: float | None = None,
) -> Narrative | None:
    """Run a generator, returning None instead of raising on any failure."""
    timeout = settings.narrative_timeout_seconds if timeout is None else timeout
    try:
        return await asyncio.wait_for(
            generator.generate(question, summary, precomputed),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Narrative generation timed out after {timeout}s")
    except Exception as e:
        logger.warning(f"Narrative generation failed, using deterministic answer: {e}")
    return None


def get_narrative_generator() -> NarrativeGenerator | None:
    """Return the configured generator, or None when no credential is set."""
    if not settings.narrative_enabled:
        return None
    return OpenAINarrativeGenerator.from_settings()
