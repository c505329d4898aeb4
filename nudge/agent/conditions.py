"""Trigger condition predicates and their evaluator.

A rule's `trigger_conditions` mapping is compiled once, at catalog load,
into a tuple of typed predicates. Authoring forms:

    {"daysSinceActive": 7}                    equality
    {"subscriptionTier": ["FREE", "TRIAL"]}   membership
    {"daysSinceActive": {"gte": 3, "lt": 7}}  numeric range (also >, >=, <, <=)
    {"streak.count": {"ne": 0}}               inequality
    {"user.email": {"exists": true}}          presence

Unknown operators raise ConfigurationError at compile time. Evaluation
never raises: a missing or mistyped context value is a non-match.
"""

from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from nudge.agent.context import MISSING, is_valid_path, resolve_path
from nudge.agent.errors import ConfigurationError
from nudge.observability.logging import get_logger

logger = get_logger(__name__)

Scalar = str | int | float | bool | None

OPERATOR_ALIASES: dict[str, str] = {
    "eq": "eq",
    "==": "eq",
    "ne": "ne",
    "!=": "ne",
    "gt": "gt",
    ">": "gt",
    "gte": "gte",
    ">=": "gte",
    "lt": "lt",
    "<": "lt",
    "lte": "lte",
    "<=": "lte",
    "in": "in",
    "exists": "exists",
}

RANGE_OPERATORS = frozenset({"gt", "gte", "lt", "lte"})


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _same(actual: Any, expected: Any) -> bool:
    # True == 1 in Python; a boolean condition must not match a count
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return bool(actual == expected)


class _Predicate(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str

    def test(self, value: Any) -> bool:
        raise NotImplementedError


class Equals(_Predicate):
    kind: Literal["equals"] = "equals"
    value: Scalar

    def test(self, value: Any) -> bool:
        return value is not MISSING and _same(value, self.value)


class NotEquals(_Predicate):
    kind: Literal["not_equals"] = "not_equals"
    value: Scalar

    def test(self, value: Any) -> bool:
        return value is not MISSING and not _same(value, self.value)


class OneOf(_Predicate):
    kind: Literal["one_of"] = "one_of"
    values: tuple[Scalar, ...]

    def test(self, value: Any) -> bool:
        return value is not MISSING and any(_same(value, v) for v in self.values)


class Range(_Predicate):
    """Numeric bounds; every bound that is set must hold."""

    kind: Literal["range"] = "range"
    gt: float | None = None
    gte: float | None = None
    lt: float | None = None
    lte: float | None = None

    def test(self, value: Any) -> bool:
        if not _is_number(value):
            return False
        if self.gt is not None and not value > self.gt:
            return False
        if self.gte is not None and not value >= self.gte:
            return False
        if self.lt is not None and not value < self.lt:
            return False
        if self.lte is not None and not value <= self.lte:
            return False
        return True


class Presence(_Predicate):
    kind: Literal["presence"] = "presence"
    present: bool = True

    def test(self, value: Any) -> bool:
        return (value is not MISSING) == self.present


Predicate = Annotated[
    Equals | NotEquals | OneOf | Range | Presence,
    Field(discriminator="kind"),
]


def compile_conditions(
    conditions: Mapping[str, Any],
    rule_id: str | None = None,
) -> tuple[Predicate, ...]:
    """Compile a raw conditions mapping into predicates, preserving order.

    Raises:
        ConfigurationError: On a malformed path, operator or operand
    """
    predicates: list[Predicate] = []
    for path, expected in conditions.items():
        if not isinstance(path, str) or not is_valid_path(path):
            raise ConfigurationError(f"Invalid condition path: {path!r}", rule_id)

        if isinstance(expected, Mapping):
            predicates.extend(_compile_operators(path, expected, rule_id))
        elif isinstance(expected, list | tuple):
            predicates.append(OneOf(path=path, values=_scalars(path, expected, rule_id)))
        elif expected is None or isinstance(expected, str | int | float | bool):
            predicates.append(Equals(path=path, value=expected))
        else:
            raise ConfigurationError(
                f"Unsupported condition value for '{path}': {type(expected).__name__}",
                rule_id,
            )
    return tuple(predicates)


def _compile_operators(
    path: str,
    operators: Mapping[str, Any],
    rule_id: str | None,
) -> list[Predicate]:
    if not operators:
        raise ConfigurationError(f"Empty operator block for '{path}'", rule_id)

    compiled: list[Predicate] = []
    bounds: dict[str, float] = {}

    for raw_op, operand in operators.items():
        op = OPERATOR_ALIASES.get(str(raw_op))
        if op is None:
            raise ConfigurationError(f"Unknown operator '{raw_op}' for '{path}'", rule_id)

        if op in RANGE_OPERATORS:
            if not _is_number(operand):
                raise ConfigurationError(
                    f"Operator '{raw_op}' for '{path}' needs a number, got {operand!r}",
                    rule_id,
                )
            bounds[op] = operand
        elif op == "in":
            if not isinstance(operand, list | tuple):
                raise ConfigurationError(f"Operator 'in' for '{path}' needs a list", rule_id)
            compiled.append(OneOf(path=path, values=_scalars(path, operand, rule_id)))
        elif op == "exists":
            if not isinstance(operand, bool):
                raise ConfigurationError(f"Operator 'exists' for '{path}' needs a bool", rule_id)
            compiled.append(Presence(path=path, present=operand))
        elif op == "eq":
            compiled.append(Equals(path=path, value=_scalar(path, operand, rule_id)))
        else:
            compiled.append(NotEquals(path=path, value=_scalar(path, operand, rule_id)))

    if bounds:
        compiled.insert(0, Range(path=path, **bounds))
    return compiled


def _scalar(path: str, value: Any, rule_id: str | None) -> Scalar:
    if value is None or isinstance(value, str | int | float | bool):
        return value
    raise ConfigurationError(f"Non-scalar operand for '{path}': {value!r}", rule_id)


def _scalars(path: str, values: Sequence[Any], rule_id: str | None) -> tuple[Scalar, ...]:
    return tuple(_scalar(path, v, rule_id) for v in values)


class ConditionEvaluator:
    """Matches compiled predicates against an event context."""

    def matches(
        self,
        predicates: Sequence[Predicate],
        context: Mapping[str, Any],
    ) -> bool:
        """Return True when every predicate holds. Empty means always."""
        for predicate in predicates:
            value = resolve_path(context, predicate.path)
            try:
                if not predicate.test(value):
                    return False
            except (TypeError, ValueError) as e:
                logger.warning(
                    "condition_evaluation_error",
                    path=predicate.path,
                    kind=predicate.kind,
                    error=str(e),
                )
                return False
        return True
