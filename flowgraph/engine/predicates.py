"""Named Predicates for Conditional Edges

An edge's ``conditional`` names one predicate from the fixed catalog below
and supplies its operand. The predicate is applied as
``predicate(output, operand)`` where output is the producing node's output.

Catalog:
- eq, ne: equality / inequality (a numeric string equals the matching number;
  any other string is simply unequal to a number)
- gt, gte, lt, lte: ordering (a string operand is coerced to float64 when the
  output is numeric, and vice versa)
- in, not_in: output is (not) a member of the operand
- contains: operand is a member of the output
- truthy, falsy: truthiness of the output (operand ignored)

No expressions, no user code: unknown names are rejected.
"""

from __future__ import annotations

import logging
import operator
from numbers import Number
from typing import Any, Callable, Dict, Tuple

from ..errors import CoercionError, ConditionError, UnknownPredicateError, WorkflowError
from .coerce import coerce

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _align(output: Any, operand: Any) -> Tuple[Any, Any]:
    """Bring a numeric string onto the numeric side's footing."""
    if _is_number(output) and isinstance(operand, str):
        return output, coerce("float64", operand)
    if isinstance(output, str) and _is_number(operand):
        return coerce("float64", output), operand
    return output, operand


def _ordered(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def compare(output: Any, operand: Any) -> bool:
        left, right = _align(output, operand)
        return bool(op(left, right))

    return compare


def _equal(output: Any, operand: Any) -> bool:
    try:
        left, right = _align(output, operand)
    except CoercionError:
        # a non-numeric string never equals a number
        return False
    return left == right


PREDICATES: Dict[str, Callable[[Any, Any], bool]] = {
    "eq": _equal,
    "ne": lambda output, operand: not _equal(output, operand),
    "gt": _ordered(operator.gt),
    "gte": _ordered(operator.ge),
    "lt": _ordered(operator.lt),
    "lte": _ordered(operator.le),
    "in": lambda output, operand: output in operand,
    "not_in": lambda output, operand: output not in operand,
    "contains": lambda output, operand: operand in output,
    "truthy": lambda output, _operand: bool(output),
    "falsy": lambda output, _operand: not output,
}


def is_known(name: str) -> bool:
    return name in PREDICATES


def evaluate(name: str, output: Any, operand: Any, edge_id: str = "") -> bool:
    """Apply the named predicate.

    Args:
        name: Predicate name from the catalog
        output: Output of the node at the edge's source
        operand: Conditional value from the schema
        edge_id: Edge being evaluated, for error context

    Returns:
        True when the edge may be traversed

    Raises:
        UnknownPredicateError: If name is not in the catalog
        ConditionError: If the predicate cannot be applied to these values
    """
    predicate = PREDICATES.get(name)
    if predicate is None:
        raise UnknownPredicateError(name, edge_id or None)

    try:
        result = predicate(output, operand)
    except (TypeError, ValueError, WorkflowError) as e:
        raise ConditionError(name, e, edge_id or None) from e

    logger.debug(f"Predicate {name}({output!r}, {operand!r}) = {result}")
    return result
