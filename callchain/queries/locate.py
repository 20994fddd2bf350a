"""Locate the method declaration that contains a source line."""

from ..errors import InvalidArgumentsError, TargetNotFoundError, UnresolvedTargetError
from ..models import LocateResult
from .base import Query


class LocateQuery(Query[LocateResult]):
    """Map (class, line) to the enclosing method declaration."""

    def execute(self, class_name: str, line: int) -> LocateResult:
        """Find the innermost method in ``class_name`` whose range contains ``line``.

        Raises:
            InvalidArgumentsError: If ``line`` is not a positive number.
            TargetNotFoundError: If no declaration in the class contains the line.
            UnresolvedTargetError: If the declaration's parameter types could
                not be resolved to a canonical signature.
        """
        if line < 1:
            raise InvalidArgumentsError(f"Line number must be positive, got {line}")

        record = self.index.find_method_by_line(class_name, line)
        if record is None:
            raise TargetNotFoundError(class_name, line)
        if not record.resolved:
            raise UnresolvedTargetError(
                record.signature.qualified,
                f"parameter types not resolvable in {record.location_str}",
            )
        return LocateResult(class_name=class_name, line=line, record=record)
