"""Keyword relevance gate backed by an external text classifier.

The gate fails open: a classifier that is missing, raises, or answers with
something unparseable yields :class:`CheckFailed`, and callers keep the ad.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from openai import AsyncOpenAI

from .logging import jlog

MIN_COPY_CHARS = 10
PROMPT_COPY_CHARS = 300
DEFAULT_MODEL = os.getenv("RELEVANCE_MODEL", "gpt-4o-mini")

SYSTEM_PROMPT = (
    "You determine if an ad is relevant to search keywords. "
    'Respond with JSON only: {"relevant": true/false, "reason": "brief reason"}'
)


@dataclass(frozen=True, slots=True)
class Relevant:
    reason: str = ""


@dataclass(frozen=True, slots=True)
class NotRelevant:
    reason: str = ""


@dataclass(frozen=True, slots=True)
class CheckFailed:
    reason: str = ""


RelevanceVerdict = Union[Relevant, NotRelevant, CheckFailed]


def keeps(verdict: RelevanceVerdict) -> bool:
    if isinstance(verdict, CheckFailed):
        return True
    return isinstance(verdict, Relevant)


class RelevanceClassifier(Protocol):
    async def classify(self, ad_copy: str, advertiser: str, keywords: str) -> Union[Relevant, NotRelevant]: ...


def build_user_prompt(ad_copy: str, advertiser: str, keywords: str) -> str:
    return (
        f'Search keywords: "{keywords}"\n'
        f"Advertiser: {advertiser or 'Unknown'}\n"
        f'Ad text: "{ad_copy[:PROMPT_COPY_CHARS]}"\n\n'
        f'Is this ad relevant to someone searching for "{keywords}"? Consider industry, topic, and intent.'
    )


def parse_verdict(content: str) -> Union[Relevant, NotRelevant]:
    """Parse the classifier's JSON answer, tolerating markdown code fences."""

    text = (content or "").strip()
    if text.startswith("```"):
        text = "\n".join(line for line in text.split("\n") if not line.startswith("```")).strip()
    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        text = text[start:end]
    payload = json.loads(text)
    if not isinstance(payload, dict) or not isinstance(payload.get("relevant"), bool):
        raise ValueError(f"unexpected classifier payload: {text[:200]}")
    reason = str(payload.get("reason") or "")
    return Relevant(reason) if payload["relevant"] else NotRelevant(reason)


class OpenAIRelevanceClassifier:
    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_MODEL) -> None:
        self.client = client
        self.model = model

    async def classify(self, ad_copy: str, advertiser: str, keywords: str) -> Union[Relevant, NotRelevant]:
        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(ad_copy, advertiser, keywords)},
            ],
            temperature=0.1,
            max_tokens=100,
        )
        content = resp.choices[0].message.content if resp.choices else ""
        return parse_verdict(content or "")


def classifier_from_env() -> Optional[OpenAIRelevanceClassifier]:
    api_key = os.getenv("OPENAI_API_KEY", "")
    if not api_key:
        return None
    client = AsyncOpenAI(api_key=api_key, base_url=os.getenv("OPENAI_BASE_URL") or None, timeout=60.0)
    return OpenAIRelevanceClassifier(client)


async def check_relevance(
    classifier: Optional[RelevanceClassifier],
    ad_copy: str,
    advertiser: str,
    keywords: str,
) -> RelevanceVerdict:
    if not ad_copy or len(ad_copy) < MIN_COPY_CHARS:
        return Relevant("Too short to evaluate")
    if classifier is None:
        return CheckFailed("API key not configured")
    try:
        return await classifier.classify(ad_copy, advertiser, keywords)
    except Exception as exc:
        jlog("warning", event="relevance_check_failed", advertiser=advertiser, error=str(exc)[:200])
        return CheckFailed(f"Check failed, including ad: {str(exc)[:200]}")


__all__ = [
    "CheckFailed",
    "NotRelevant",
    "OpenAIRelevanceClassifier",
    "Relevant",
    "RelevanceClassifier",
    "RelevanceVerdict",
    "build_user_prompt",
    "check_relevance",
    "classifier_from_env",
    "keeps",
    "parse_verdict",
]
