import logging
import random
from typing import Dict, List, Optional, Sequence, TypeVar
from quizbank.core.errors import InsufficientQuestionPool
from quizbank.models.orm import Complexity

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DISTRIBUTION: Dict[str, int] = {"easy": 4, "moderate": 4, "complex": 2}


def shuffled(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a Fisher-Yates shuffled copy of ``items``; every permutation is equally likely."""
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def draw(items: Sequence[T], count: int, rng: random.Random) -> List[T]:
    return shuffled(items, rng)[:max(0, min(count, len(items)))]


def _complexity(q) -> str:
    c = q.complexity
    return c.value if isinstance(c, Complexity) else str(c)


def normalize_distribution(distribution: Optional[Dict[str, int]]) -> Dict[str, int]:
    dist = dict(DEFAULT_DISTRIBUTION if distribution is None else distribution)
    known = {c.value for c in Complexity}
    unknown = set(dist) - known
    if unknown:
        raise ValueError(f"unknown complexity levels: {sorted(unknown)}")
    if any(n < 0 for n in dist.values()):
        raise ValueError("distribution counts must be non-negative")
    return dist


class QuizGenerator:
    """Selects a non-repeating, complexity-balanced random question set for a user.

    Questions the user already answered correctly are excluded. Each complexity
    bucket contributes up to its requested count; any shortfall is filled from
    the rest of the available pool regardless of complexity, so the nominal
    distribution is relaxed rather than the quiz refused.
    """

    def __init__(self, questions, history, rng: Optional[random.Random] = None,
                 distribution: Optional[Dict[str, int]] = None):
        self.questions = questions
        self.history = history
        self.rng = rng or random.Random()
        self.distribution = normalize_distribution(distribution)

    def generate(self, user_id: str, distribution: Optional[Dict[str, int]] = None) -> List:
        dist = normalize_distribution(distribution) if distribution is not None else self.distribution
        target = sum(dist.values())

        excluded = set(self.history.correctly_answered_ids(user_id))
        pool = [q for q in self.questions.find_available(excluded) if q.id not in excluded]

        buckets: Dict[str, List] = {c.value: [] for c in Complexity}
        for q in pool:
            buckets.setdefault(_complexity(q), []).append(q)

        selected = []
        for level, count in dist.items():
            selected.extend(draw(buckets.get(level, []), count, self.rng))

        if len(selected) < target:
            chosen = {q.id for q in selected}
            remaining = [q for q in pool if q.id not in chosen]
            selected.extend(draw(remaining, target - len(selected), self.rng))

        final = shuffled(selected, self.rng)[:target]
        if len(final) < target:
            logger.warning("question pool too small for user %s: %d of %d", user_id, len(final), target)
            raise InsufficientQuestionPool(required=target, available=len(final))
        logger.debug("generated quiz for user %s from pool of %d (%d excluded)", user_id, len(pool), len(excluded))
        return final
