"""Concurrent per-key fan-out with an all-settled join."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from finance_gateway.data.outcome import Err, KeyedResult, Ok, OrderedResult, Outcome, count_outcomes

logger = logging.getLogger(__name__)

V = TypeVar("V")

KeyOperation = Callable[[str], Awaitable[V]]


def _key_list(keys: Iterable[str]) -> list[str]:
    if isinstance(keys, str):
        raise TypeError("keys must be a sequence of keys, not a single string")
    return list(keys)


def describe_error(error: BaseException) -> str:
    """Human-readable failure description, never empty."""
    return str(error) or type(error).__name__


async def _settle(key: str, op: KeyOperation[V], label: str) -> Outcome[V]:
    try:
        value = await op(key)
    except Exception as e:
        logger.warning(f"{label}({key}): {describe_error(e)}")
        return Err(describe_error(e))
    logger.debug(f"{label}({key}): ok")
    return Ok(value)


async def fan_out(
    keys: Iterable[str],
    op: KeyOperation[V],
    *,
    limit: int | None = None,
    label: str = "fan_out",
) -> OrderedResult[V]:
    """
    Run op(key) for every key concurrently and wait for all to settle.

    Every call is scheduled before any is awaited. A failing call never
    aborts its siblings; it becomes an Err outcome in its slot.

    Args:
        keys: Ordered keys; duplicates are independent calls
        op: Async per-key operation
        limit: Max in-flight calls (default: unbounded)
        label: Name used in log lines

    Returns:
        Outcomes aligned with the input order

    Raises:
        TypeError: If keys is a plain string or not iterable
        ValueError: If keys is empty or limit is not positive
    """
    key_list = _key_list(keys)
    if not key_list:
        raise ValueError("fan_out requires at least one key")
    if limit is not None and limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")

    if limit is None:
        run = op
    else:
        semaphore = asyncio.Semaphore(limit)

        async def run(key: str) -> V:
            async with semaphore:
                return await op(key)

    outcomes = await asyncio.gather(*(_settle(key, run, label) for key in key_list))

    ok, failed = count_outcomes(outcomes)
    logger.info(f"{label}: {ok} successful, {failed} failed")
    return list(outcomes)


async def fan_out_ordered(
    keys: Iterable[str],
    op: KeyOperation[V],
    *,
    limit: int | None = None,
    label: str = "fan_out",
) -> OrderedResult[V]:
    """Sequence-mode aggregate: outcomes in input order."""
    return await fan_out(keys, op, limit=limit, label=label)


async def fan_out_keyed(
    keys: Iterable[str],
    op: KeyOperation[V],
    *,
    limit: int | None = None,
    label: str = "fan_out",
) -> KeyedResult[V]:
    """
    Keyed-mode aggregate: a mapping from key to outcome.

    Duplicate keys are still fetched independently, but only the outcome of
    the last occurrence in input order is kept.
    """
    key_list = _key_list(keys)
    outcomes = await fan_out(key_list, op, limit=limit, label=label)

    result: KeyedResult[V] = {}
    for key, outcome in zip(key_list, outcomes):
        if key in result:
            logger.warning(f"{label}: duplicate key {key!r}, keeping last occurrence")
        result[key] = outcome
    return result
