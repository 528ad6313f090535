# tripparty/services/advisor_tuning.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from tripparty.core.config import ADVISOR_BUSY_KEYWORDS


@dataclass(frozen=True)
class CompletionParams:
    max_tokens: int = 1000
    temperature: float = 0.7


DEFAULT_PARAMS = CompletionParams(max_tokens=1000, temperature=0.7)
TIGHTENED_PARAMS = CompletionParams(max_tokens=600, temperature=0.5)

TuningPolicy = Callable[[str], CompletionParams]


class KeywordTuningPolicy:
    """
    Shorter, less random completions for messages that mention a
    high-traffic topic, so the reply fits in the advisor's time budget.
    """

    def __init__(
        self,
        keywords: Iterable[str],
        default: CompletionParams = DEFAULT_PARAMS,
        tightened: CompletionParams = TIGHTENED_PARAMS,
    ):
        self.keywords = tuple(k.strip().lower() for k in keywords if k and k.strip())
        self.default = default
        self.tightened = tightened

    def matches(self, message: str) -> bool:
        text = (message or "").lower()
        return any(k in text for k in self.keywords)

    def __call__(self, message: str) -> CompletionParams:
        return self.tightened if self.matches(message) else self.default


def default_tuning_policy(keywords: Optional[Iterable[str]] = None) -> KeywordTuningPolicy:
    return KeywordTuningPolicy(ADVISOR_BUSY_KEYWORDS if keywords is None else keywords)
