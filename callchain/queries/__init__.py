"""Query classes for callchain."""

from .base import Query
from .locate import LocateQuery
from .ancestors import AncestorsQuery
from .chains import CallerChainsQuery
from .tree import CallTreeQuery

__all__ = [
    "Query",
    "LocateQuery",
    "AncestorsQuery",
    "CallerChainsQuery",
    "CallTreeQuery",
]
