"""Exécuteur de résilience: retries bornés avec backoff pour les tiers 2/3.

Ce module définit la politique de retry (nombre de tentatives, timeout par tentative,
stratégie de backoff avec jitter plafonné) et l'exécuteur asynchrone `with_retry`. Après
épuisement des tentatives, la dernière erreur est propagée: l'appelant la traite comme
un échec de la couche, jamais comme un blocage.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

import structlog

from directive_engine.app.metrics import RETRY_ATTEMPTS
from directive_engine.domain.errors import TransientIOError

T = TypeVar("T")

log = structlog.get_logger(__name__)


class RetryStrategy(Enum):
    """Stratégies de retry disponibles."""

    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    FIXED = "fixed"


@dataclass
class RetryPolicy:
    """Politique de retry d'une opération de tier."""

    max_attempts: int = 3
    attempt_timeout: float | None = 2.0
    retry_strategy: RetryStrategy = RetryStrategy.EXPONENTIAL
    base_delay: float = 0.1
    max_delay: float = 2.0
    jitter: bool = True
    retry_on: tuple[type[BaseException], ...] = field(default=(TransientIOError,))


def calculate_retry_delay(attempt: int, policy: RetryPolicy) -> float:
    """Calculate retry delay according to configured strategy."""
    if policy.retry_strategy == RetryStrategy.EXPONENTIAL:
        delay = policy.base_delay * (2**attempt)
    elif policy.retry_strategy == RetryStrategy.LINEAR:
        delay = policy.base_delay * (attempt + 1)
    else:  # FIXED
        delay = policy.base_delay

    # Apply jitter if enabled
    if policy.jitter:
        delay *= random.uniform(0.5, 1.5)

    return min(delay, policy.max_delay)


async def _attempt(operation: Callable[[], Awaitable[T]], policy: RetryPolicy, name: str) -> T:
    if policy.attempt_timeout is None:
        return await operation()
    try:
        return await asyncio.wait_for(operation(), policy.attempt_timeout)
    except TimeoutError as exc:
        raise TransientIOError(f"{name} timed out after {policy.attempt_timeout}s") from exc


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    operation_name: str = "operation",
) -> T:
    """Exécute `operation` avec retries; propage la dernière erreur après épuisement.

    Seules les exceptions de `policy.retry_on` déclenchent un retry; les autres sont
    propagées immédiatement (ex: tenant absent).
    """
    attempts = max(1, policy.max_attempts)
    for attempt in range(attempts):
        try:
            result = await _attempt(operation, policy, operation_name)
        except policy.retry_on as exc:
            if attempt + 1 >= attempts:
                RETRY_ATTEMPTS.labels(operation=operation_name, result="exhausted").inc()
                log.warning(
                    "retry_exhausted",
                    operation=operation_name,
                    attempts=attempts,
                    error=str(exc),
                )
                raise
            delay = calculate_retry_delay(attempt, policy)
            RETRY_ATTEMPTS.labels(operation=operation_name, result="retried").inc()
            log.debug(
                "retry_scheduled",
                operation=operation_name,
                attempt=attempt + 1,
                delay=round(delay, 3),
                error=str(exc),
            )
            await asyncio.sleep(delay)
        else:
            if attempt:
                RETRY_ATTEMPTS.labels(operation=operation_name, result="recovered").inc()
            return result
    raise RuntimeError("unreachable")  # pragma: no cover
