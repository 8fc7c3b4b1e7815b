from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Type, TypeVar

from tenacity import retry, stop_after_attempt, wait_exponential

from app.core.config import ScreeningConfig
from app.models.screening import (
    AbstractScreening,
    ManuscriptScreening,
    ReviewerCandidate,
    SuggestedReviewer,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_REVIEWERS_MESSAGE = (
    "Cannot suggest reviewers as none are available in the system. "
    "The manuscript seems to be a good fit otherwise."
)

_WORD_RE = re.compile(r"[a-z][a-z0-9\-]{3,}")
_STOPWORDS = {
    "this", "that", "with", "from", "have", "were", "which", "their", "these", "those", "into",
    "using", "used", "also", "than", "then", "such", "been", "being", "there", "where", "while",
    "study", "paper", "results", "result", "approach", "method", "methods", "based", "show",
    "shows", "propose", "proposed", "present", "presents", "between", "through", "about",
}


def _tokens(text: Optional[str]) -> set[str]:
    return {w for w in _WORD_RE.findall((text or "").lower()) if w not in _STOPWORDS}


def _first_sentence(text: str) -> str:
    cleaned = " ".join((text or "").split())
    match = re.search(r"(.+?[.!?])(\s|$)", cleaned)
    sentence = match.group(1) if match else cleaned
    if len(sentence) > 220:
        sentence = sentence[:217].rstrip() + "..."
    return sentence


def build_manuscript_prompt(abstract: str, keywords: Optional[str], reviewers: list[ReviewerCandidate]) -> str:
    lines = "\n".join(
        f"- ID: {r.id}, Name: {r.name}, Specialization: {r.specialization or 'N/A'}" for r in reviewers
    )
    return (
        "You are an expert editor-in-chief for a multidisciplinary academic journal. "
        "Your task is to perform an initial screening of a new manuscript submission.\n\n"
        "1. Analyze the abstract and keywords to understand the manuscript's topic and scope.\n"
        "2. From the provided list of reviewers, identify the 2-3 most suitable candidates to peer-review "
        "this manuscript, based on the alignment of their specialization with the manuscript's topic. "
        "Give a brief reason for each choice. Only use IDs from the list.\n"
        "3. Write a concise recommendation (2-3 sentences) for the handling editor on whether the paper "
        "seems like a good fit for the journal.\n\n"
        f"Available Reviewers:\n{lines}\n\n"
        f"Manuscript Abstract:\n{abstract}\n\n"
        f"Manuscript Keywords:\n{keywords or ''}"
    )


def build_abstract_prompt(abstract: str) -> str:
    return (
        "You are an expert academic editor. Perform a preliminary screening of a manuscript's abstract.\n"
        "1. Estimate an originality score: a simulated overlap percentage with existing literature, low for "
        "novel ideas and higher for well-trodden topics. Format it as 'X% Match'.\n"
        "2. Provide a one-sentence summary of the manuscript's potential novelty.\n\n"
        f"Abstract:\n{abstract}"
    )


class GeminiInvalidResponseError(Exception):
    pass


def _default_model_call(config: ScreeningConfig) -> Callable[[str, Type[T]], T]:
    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=8), reraise=True)
    def _call(prompt: str, schema: Type[T]) -> T:
        from google import genai

        client = genai.Client(api_key=config.api_key)
        response = client.models.generate_content(
            model=config.model_name,
            contents=prompt,
            config={
                "response_mime_type": "application/json",
                "response_schema": schema,
                "temperature": 0,
            },
        )
        if not response.parsed:
            raise GeminiInvalidResponseError()
        return response.parsed

    return _call


@dataclass
class ScreeningService:
    """
    AI 初筛：审稿人推荐 + 摘要新颖性评估

    中文注释:
    1) 配置 GEMINI_API_KEY 时调用 Gemini（结构化输出，pydantic schema）。
    2) 未配置或调用失败时，使用本地关键词重合度规则兜底，保证编辑页始终可用。
    """

    config: ScreeningConfig
    model_call: Optional[Callable[[str, Type[Any]], Any]] = None

    def __post_init__(self) -> None:
        if self.model_call is None and self.config.enabled:
            self.model_call = _default_model_call(self.config)

    def _ask(self, prompt: str, schema: Type[T]) -> Optional[T]:
        if self.model_call is None:
            return None
        try:
            return self.model_call(prompt, schema)
        except Exception as e:
            logger.warning("Screening model call failed, falling back to rules: %s", e)
            return None

    def screen_manuscript(
        self,
        *,
        abstract: str,
        keywords: Optional[str],
        reviewers: list[ReviewerCandidate],
    ) -> ManuscriptScreening:
        if not reviewers:
            return ManuscriptScreening(suggested_reviewers=[], recommendation=NO_REVIEWERS_MESSAGE)

        result = self._ask(build_manuscript_prompt(abstract, keywords, reviewers), ManuscriptScreening)
        if result is not None:
            # 中文注释: 模型可能编造 ID，只保留候选列表里真实存在的审稿人
            known = {r.id for r in reviewers}
            result.suggested_reviewers = [s for s in result.suggested_reviewers if s.id in known][
                : self.config.max_suggestions
            ]
            if result.suggested_reviewers:
                return result
        return self._rank_reviewers(abstract, keywords, reviewers)

    def _rank_reviewers(
        self,
        abstract: str,
        keywords: Optional[str],
        reviewers: list[ReviewerCandidate],
    ) -> ManuscriptScreening:
        keyword_terms = [k.strip() for k in (keywords or "").split(",") if k.strip()]
        topic = _tokens(abstract) | _tokens(" ".join(keyword_terms))

        scored: list[tuple[int, str, ReviewerCandidate, list[str]]] = []
        for r in reviewers:
            shared = sorted(topic & _tokens(r.specialization))
            scored.append((len(shared), r.name.lower(), r, shared))
        scored.sort(key=lambda row: (-row[0], row[1]))

        picks = scored[: self.config.max_suggestions]
        suggestions = []
        for score, _, r, shared in picks:
            if score:
                reason = f"Specialization in {r.specialization} overlaps with the manuscript topic ({', '.join(shared[:3])})."
            elif r.specialization:
                reason = f"Available reviewer with expertise in {r.specialization}; no direct topical overlap was found."
            else:
                reason = "Available reviewer; no specialization is recorded in their profile."
            suggestions.append(SuggestedReviewer(id=r.id, name=r.name, reason=reason))

        matched = sum(1 for p in picks if p[0])
        topic_text = ", ".join(keyword_terms[:3]) or "the stated research area"
        if matched:
            recommendation = (
                f"The manuscript addresses {topic_text} and falls within the journal's scope. "
                f"{matched} of the suggested reviewers have closely matching expertise, so it can proceed to peer review."
            )
        else:
            recommendation = (
                f"The manuscript addresses {topic_text}. "
                "No available reviewer has a closely matching specialization, so consider inviting an external expert."
            )
        return ManuscriptScreening(suggested_reviewers=suggestions, recommendation=recommendation)

    def screen_abstract(self, *, abstract: str) -> AbstractScreening:
        result = self._ask(build_abstract_prompt(abstract), AbstractScreening)
        if result is not None:
            return result

        words = _WORD_RE.findall(abstract.lower())
        if words:
            repetition = 1 - len(set(words)) / len(words)
            overlap = int(round(5 + repetition * 60))
        else:
            overlap = 5
        overlap = max(5, min(65, overlap))
        summary = _first_sentence(abstract) or "The abstract does not state a clear contribution."
        return AbstractScreening(originality_score=f"{overlap}% Match", novelty_summary=summary)
