"""Per-key outcomes and aggregate result shapes."""

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar, Union

V = TypeVar("V")


@dataclass(frozen=True)
class Ok(Generic[V]):
    """Successful per-key operation."""

    value: V
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Err:
    """Failed per-key operation with a human-readable message."""

    message: str
    ok: ClassVar[bool] = False


Outcome = Union[Ok[V], Err]

# Keyed mode: one outcome per distinct key (e.g. quotes by symbol)
KeyedResult = dict[str, Outcome[V]]
# Ordered mode: outcomes aligned positionally with the input keys
OrderedResult = list[Outcome[V]]


def outcome_to_json(outcome: Outcome[Any]) -> Any:
    """Serialize an outcome: the value itself, or an error marker."""
    if isinstance(outcome, Ok):
        return outcome.value
    return {"error": outcome.message}


def keyed_to_json(result: KeyedResult[Any]) -> dict[str, Any]:
    """Serialize a keyed aggregate into a plain mapping."""
    return {key: outcome_to_json(outcome) for key, outcome in result.items()}


def ordered_to_json(result: OrderedResult[Any]) -> list[Any]:
    """Serialize an ordered aggregate into a plain list."""
    return [outcome_to_json(outcome) for outcome in result]


def count_outcomes(outcomes: Any) -> tuple[int, int]:
    """Return (successful, failed) counts for an iterable of outcomes."""
    ok = failed = 0
    for outcome in outcomes:
        if isinstance(outcome, Ok):
            ok += 1
        else:
            failed += 1
    return ok, failed
