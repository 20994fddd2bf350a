"""Base query interface."""

import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from ..graph import AnalysisIndex

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Query(ABC, Generic[T]):
    """Base query interface.

    All queries take an index and execute against it. Traversals count node
    visits against the policy budget; ``_tick`` returns False once it is
    exhausted.
    """

    def __init__(self, index: AnalysisIndex):
        self.index = index
        self.graph = index.graph
        self.policy = index.policy
        self._visits = 0

    def _tick(self) -> bool:
        self._visits += 1
        if self.policy.budget_exceeded(self._visits):
            logger.warning(
                f"{type(self).__name__} stopped after {self.policy.max_visits} node visits; "
                "result is truncated"
            )
            return False
        return True

    @abstractmethod
    def execute(self, **params) -> T:
        """Execute the query and return typed result."""
        pass
