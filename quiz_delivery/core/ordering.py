"""Deterministic per-student question ordering.

The order is derived only from the quiz and test-taker identifiers, so it is
reproduced exactly after a reload or on another device without asking the
server. This discourages neighbours from comparing answers by position; it is
not a security measure; anyone who knows both identifiers can recompute the
order.
"""

from __future__ import annotations

import hashlib
import math
import random

from quiz_delivery.core.models import Quiz


def seed_for(quiz_id: str, test_taker_id: str) -> int:
    digest = hashlib.sha256(f"{quiz_id}:{test_taker_id}".encode("utf-8")).hexdigest()
    return int(digest[:12], 16)


def seeded_shuffle(items: list[str], seed: int) -> list[str]:
    """Fisher-Yates shuffle driven by a seeded generator. Returns a new list."""
    rng = random.Random(seed)
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = math.floor(rng.random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


class OrderingEngine:
    """Computes the display order of a quiz's questions for one test-taker."""

    def display_order(self, quiz: Quiz, test_taker_id: str) -> list[str]:
        question_ids = [question.id for question in quiz.questions]
        if not quiz.shuffle_questions:
            return question_ids
        return seeded_shuffle(question_ids, seed_for(quiz.id, test_taker_id))
