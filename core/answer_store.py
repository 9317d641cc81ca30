"""
Screening answer templates.

Ordered question/answer pairs typed into application forms positionally.
The store is edited from the dashboard; runs take a copy when they start.
"""

import threading
from typing import Iterable, List

from .models import AnswerTemplate

DEFAULT_ANSWERS = (
    ("Why should you be hired for this role?", ""),
    ("Are you available for 6 months?", "Yes, I am available for a duration of 6 months starting immediately."),
)


def default_answers() -> List[AnswerTemplate]:
    return [AnswerTemplate(question=q, answer=a) for q, a in DEFAULT_ANSWERS]


class AnswerStore:
    """Thread-safe holder for the current answer templates."""

    def __init__(self, answers: Iterable[AnswerTemplate] = None):
        self._answers = list(answers) if answers is not None else default_answers()
        self._lock = threading.Lock()

    def list(self) -> List[AnswerTemplate]:
        """A copy of the templates; later edits do not leak into it."""
        with self._lock:
            return [AnswerTemplate(a.question, a.answer) for a in self._answers]

    def replace(self, answers: Iterable[AnswerTemplate]) -> List[AnswerTemplate]:
        with self._lock:
            self._answers = [AnswerTemplate(a.question, a.answer) for a in answers]
        return self.list()

    def get(self, index: int) -> AnswerTemplate:
        """Raises IndexError for an unknown position."""
        with self._lock:
            if index < 0:
                raise IndexError(index)
            template = self._answers[index]
            return AnswerTemplate(template.question, template.answer)

    def set_answer(self, index: int, answer: str) -> AnswerTemplate:
        with self._lock:
            if index < 0:
                raise IndexError(index)
            self._answers[index].answer = answer
            return AnswerTemplate(self._answers[index].question, answer)

    def __len__(self) -> int:
        with self._lock:
            return len(self._answers)
