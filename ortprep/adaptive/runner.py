"""Adaptive difficulty mini-test runner."""

from typing import Any, Dict, List, Optional, Sequence, Set, Tuple
from enum import Enum

import structlog

from ortprep.schemas.mini_tests import Difficulty, MiniTestQuestion

logger = structlog.get_logger()

TIER_ORDER: List[Difficulty] = [Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD]


class RunnerStatus(str, Enum):
    AWAITING_ANSWER = "awaiting_answer"
    SHOWING_RESULT = "showing_result"
    COMPLETE = "complete"
    NO_QUESTIONS = "no_questions"


class RunnerStateError(Exception):
    """Operation not allowed in the runner's current status."""


def promote(tier: Difficulty) -> Difficulty:
    idx = TIER_ORDER.index(tier)
    return TIER_ORDER[min(idx + 1, len(TIER_ORDER) - 1)]


def demote(tier: Difficulty) -> Difficulty:
    idx = TIER_ORDER.index(tier)
    return TIER_ORDER[max(idx - 1, 0)]


class AdaptiveTestRunner:
    """Steps a learner through questions, moving the difficulty with each answer.

    A correct answer raises the tier by one, an incorrect answer lowers it;
    the position within the tier is kept. Advancing moves to the next
    unserved question of the current tier, then on to the following tiers
    in easy-medium-hard order, and completes when none of those has an
    unserved question left.

    The index carries across a tier change, so the search in the new tier
    starts after it: unserved questions earlier in that tier, or in tiers
    already passed, may never be asked.
    """

    def __init__(self, questions: Sequence[MiniTestQuestion]):
        self.questions = list(questions)
        self.pools: Dict[Difficulty, List[MiniTestQuestion]] = {
            tier: [q for q in self.questions if q.difficulty == tier] for tier in TIER_ORDER
        }
        self.restart()

    def restart(self):
        """Return to the state of a freshly created runner."""
        self.tier = Difficulty.EASY
        self.index = 0
        self.score = 0
        self.answered = 0
        self.served: Set[Tuple[Difficulty, int]] = set()
        self.selected: Optional[str] = None
        self.last_correct: Optional[bool] = None
        self.last_question: Optional[MiniTestQuestion] = None
        if self.pools[self.tier]:
            self.status = RunnerStatus.AWAITING_ANSWER
        else:
            self.status = RunnerStatus.NO_QUESTIONS

    @property
    def current_question(self) -> Optional[MiniTestQuestion]:
        if self.status == RunnerStatus.SHOWING_RESULT:
            return self.last_question
        if self.status != RunnerStatus.AWAITING_ANSWER:
            return None
        pool = self.pools[self.tier]
        if self.index < len(pool):
            return pool[self.index]
        return None

    @property
    def percentage(self) -> int:
        if not self.answered:
            return 0
        return round(self.score / self.answered * 100)

    def answer(self, option: str) -> bool:
        """Record the selected option; returns whether it was correct."""
        if self.status != RunnerStatus.AWAITING_ANSWER:
            raise RunnerStateError(f"cannot answer while {self.status.value}")

        question = self.current_question
        correct = option == question.correct

        self.served.add((self.tier, self.index))
        self.selected = option
        self.last_question = question
        self.last_correct = correct
        self.answered += 1
        if correct:
            self.score += 1
            self.tier = promote(self.tier)
        else:
            self.tier = demote(self.tier)
        self.status = RunnerStatus.SHOWING_RESULT
        return correct

    def advance(self) -> RunnerStatus:
        """Move past the shown result to the next question or completion."""
        if self.status != RunnerStatus.SHOWING_RESULT:
            raise RunnerStateError(f"cannot advance while {self.status.value}")

        self.selected = None
        self.last_correct = None
        self.last_question = None

        index = self._next_unserved(self.tier, self.index + 1)
        if index is not None:
            self.index = index
            self.status = RunnerStatus.AWAITING_ANSWER
            return self.status

        # Current tier exhausted; tiers after it with questions are next
        for tier in TIER_ORDER[TIER_ORDER.index(self.tier) + 1:]:
            index = self._next_unserved(tier, 0)
            if index is not None:
                self.tier = tier
                self.index = index
                self.status = RunnerStatus.AWAITING_ANSWER
                return self.status

        self.status = RunnerStatus.COMPLETE
        logger.debug("Mini-test complete", score=self.score, answered=self.answered)
        return self.status

    def _next_unserved(self, tier: Difficulty, start: int) -> Optional[int]:
        # Each question is served at most once per run
        for index in range(start, len(self.pools[tier])):
            if (tier, index) not in self.served:
                return index
        return None

    def snapshot(self) -> Dict[str, Any]:
        question = self.current_question
        return {
            "status": self.status.value,
            "difficulty": self.tier.value,
            "index": self.index,
            "score": self.score,
            "answered": self.answered,
            "total_questions": len(self.questions),
            "percentage": self.percentage,
            "selected": self.selected,
            "last_correct": self.last_correct,
            "question": question.public() if question and self.status == RunnerStatus.AWAITING_ANSWER else None,
            "result": question.model_dump() if question and self.status == RunnerStatus.SHOWING_RESULT else None,
        }
