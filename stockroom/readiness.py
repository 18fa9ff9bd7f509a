"""
Stockroom — Startup Readiness Guard
=====================================

What:  Brings the relational store to a migrated, query-ready state before a
       service starts accepting requests.
Why:   In container deployments the database is often still starting when the
       service boots. Connection failures during that window are transient and
       worth waiting out; a broken migration is not, and must stop the process.
How:   Runs a readiness operation (normally `DatabaseMigrator.migrate`) under a
       tenacity retry policy: fixed delay, bounded attempts, retrying only
       failures that `classify_failure` marks as retryable.
Who:   Called once from the application lifespan (see main.py).
When:  Process startup, before uvicorn opens its listening socket.

State Machine:
    PENDING ──run()──▶ ATTEMPTING(0)
    ATTEMPTING(i) ── success ────────────────────────────▶ READY
    ATTEMPTING(i) ── retryable, i+1 < N ── sleep D ──────▶ ATTEMPTING(i+1)
    ATTEMPTING(i) ── retryable, i+1 == N ────────────────▶ ABORTED (ReadinessExhaustedError)
    ATTEMPTING(i) ── fatal ──────────────────────────────▶ ABORTED (original error re-raised)

    A guard runs at most once; READY and ABORTED are terminal.

Guarantees (N = max_retries, D = retry_delay):
    - Success on attempt k  → exactly k+1 attempts and k sleeps
    - Fatal on attempt k    → exactly k+1 attempts, no further sleep, error propagates
    - Retryable every time  → N attempts, N-1 sleeps, ReadinessExhaustedError
"""

import errno
import logging
import socket
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterator, List, Optional

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from stockroom.exceptions import ReadinessExhaustedError, StoreUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 10
DEFAULT_RETRY_DELAY = 5.0

# SQLSTATE class 08 = connection exception; 57P03 = cannot_connect_now
# (PostgreSQL is up but still starting or recovering)
RETRYABLE_SQLSTATE_PREFIXES = ("08",)
RETRYABLE_SQLSTATES = frozenset({"57P03"})

# SQL Server error 40: "Could not open a connection to SQL Server"
RETRYABLE_ERROR_NUMBERS = frozenset({40})

RETRYABLE_MESSAGE_FRAGMENTS = (
    "could not open a connection",
    "connection refused",
    "could not connect to server",
    "the database system is starting up",
    # asyncio, when every resolved address (e.g. ::1 and 127.0.0.1) refused
    "connect call failed",
)

# OSError errnos raised before a connection exists
RETRYABLE_ERRNOS = frozenset({errno.ECONNREFUSED, errno.EHOSTUNREACH, errno.ENETUNREACH})


# ══════════════════════════════════════════════════════════════════════════
# Failure Classification
# ══════════════════════════════════════════════════════════════════════════

class FailureKind(str, Enum):
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True)
class ClassifiedError:
    """
    Structured view of a readiness failure.

    Attributes:
        kind:    RETRYABLE or FATAL; the only thing the guard branches on
        code:    SQLSTATE string or vendor error number, when the driver supplied one
        message: Text of the top-level exception
        error:   The exception itself, re-raised unchanged on FATAL
    """
    kind: FailureKind
    message: str
    code: Optional[object] = None
    error: Optional[BaseException] = None

    @property
    def retryable(self) -> bool:
        return self.kind is FailureKind.RETRYABLE


def _error_chain(exc: BaseException) -> Iterator[BaseException]:
    """
    Yield `exc`, the DBAPI error SQLAlchemy wrapped (`.orig`), and the
    `__cause__` / `__context__` chain, each at most once.
    """
    pending = [exc]
    seen = set()
    while pending:
        current = pending.pop(0)
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.extend([
            getattr(current, "orig", None),
            current.__cause__,
            current.__context__,
        ])


def _error_code(exc: BaseException) -> Optional[object]:
    sqlstate = getattr(exc, "sqlstate", None) or getattr(exc, "pgcode", None)
    if isinstance(sqlstate, str) and sqlstate:
        return sqlstate
    number = getattr(exc, "number", None)
    if isinstance(number, int) and not isinstance(number, bool):
        return number
    return None


def _is_retryable_link(exc: BaseException, code: Optional[object]) -> bool:
    if isinstance(exc, (ConnectionError, TimeoutError, socket.gaierror)):
        return True
    if isinstance(exc, OSError) and exc.errno in RETRYABLE_ERRNOS:
        return True
    if isinstance(code, str) and (
        code in RETRYABLE_SQLSTATES or code.startswith(RETRYABLE_SQLSTATE_PREFIXES)
    ):
        return True
    if isinstance(code, int) and code in RETRYABLE_ERROR_NUMBERS:
        return True
    text = str(exc).lower()
    return any(fragment in text for fragment in RETRYABLE_MESSAGE_FRAGMENTS)


def classify_failure(exc: BaseException) -> ClassifiedError:
    """
    Decide whether a readiness failure is worth retrying.

    Total and deterministic: every exception maps to exactly one kind.
    Retryable when any link of the error chain is a connection-level OS error,
    carries a connection SQLSTATE / vendor number, or reports a known
    "cannot connect" message. Everything else (migration errors, missing
    tables, programming errors) is FATAL.
    """
    first_code: Optional[object] = None
    for link in _error_chain(exc):
        code = _error_code(link)
        if first_code is None:
            first_code = code
        if _is_retryable_link(link, code):
            return ClassifiedError(
                kind=FailureKind.RETRYABLE,
                message=str(exc),
                code=code if code is not None else first_code,
                error=exc,
            )
    return ClassifiedError(
        kind=FailureKind.FATAL,
        message=str(exc),
        code=first_code,
        error=exc,
    )


# ══════════════════════════════════════════════════════════════════════════
# Guard
# ══════════════════════════════════════════════════════════════════════════

class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    FATAL_FAILURE = "fatal_failure"


class ReadinessState(str, Enum):
    PENDING = "pending"
    ATTEMPTING = "attempting"
    READY = "ready"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ReadinessAttempt:
    """One invocation of the readiness operation (ephemeral, never persisted)."""
    index: int
    outcome: AttemptOutcome
    delay: float = 0.0
    failure: Optional[ClassifiedError] = None


class StartupReadinessGuard:
    """
    Runs a readiness operation until it succeeds, fails fatally, or runs out
    of attempts.

    Args:
        operation:   Zero-argument callable; returns on success, raises on failure.
        max_retries: Maximum number of attempts N (>= 1).
        retry_delay: Fixed delay D in seconds between attempts (>= 0).
        classifier:  Maps an exception to a ClassifiedError.
        sleep:       Blocking sleep function (injected in tests).

    Usage:
        guard = StartupReadinessGuard(migrator.migrate, max_retries=10, retry_delay=5)
        guard.run()   # returns when READY, raises when ABORTED
    """

    def __init__(
        self,
        operation: Callable[[], object],
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        classifier: Callable[[BaseException], ClassifiedError] = classify_failure,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        if retry_delay < 0:
            raise ValueError(f"retry_delay must not be negative, got {retry_delay}")
        self.operation = operation
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.classifier = classifier
        self._sleep = sleep
        self.state = ReadinessState.PENDING
        self.attempts: List[ReadinessAttempt] = []

    def run(self) -> None:
        """
        Block until the store is ready.

        Raises:
            ReadinessExhaustedError: all N attempts failed with retryable errors.
            Exception: the original error of the first fatal failure.
            RuntimeError: the guard has already run.
        """
        if self.state is not ReadinessState.PENDING:
            raise RuntimeError(f"Readiness guard already ran (state={self.state.value})")
        self.state = ReadinessState.ATTEMPTING

        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(StoreUnavailableError),
            before_sleep=self._before_sleep,
            sleep=self._sleep,
        )

        try:
            retrying(self._attempt)
        except RetryError as e:
            self.state = ReadinessState.ABORTED
            last_error = e.last_attempt.exception()
            logger.error(
                "Database did not become ready after %d attempt(s); last error: %s",
                len(self.attempts),
                last_error,
            )
            raise ReadinessExhaustedError(attempts=len(self.attempts)) from last_error
        except Exception as e:
            self.state = ReadinessState.ABORTED
            logger.error("A non-recoverable database or migration error occurred: %s", e)
            raise

        self.state = ReadinessState.READY
        logger.info("Database migration complete after %d attempt(s).", len(self.attempts))

    def _attempt(self) -> None:
        """One readiness attempt; retryable failures are re-raised as StoreUnavailableError."""
        index = len(self.attempts)
        logger.info(
            "Applying database migrations (attempt %d/%d)...",
            index + 1,
            self.max_retries,
        )
        try:
            self.operation()
        except Exception as exc:
            failure = self.classifier(exc)
            if failure.retryable:
                self.attempts.append(
                    ReadinessAttempt(index, AttemptOutcome.RETRYABLE_FAILURE, failure=failure)
                )
                raise StoreUnavailableError(failure) from exc
            self.attempts.append(
                ReadinessAttempt(index, AttemptOutcome.FATAL_FAILURE, failure=failure)
            )
            raise
        self.attempts.append(ReadinessAttempt(index, AttemptOutcome.SUCCESS))

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else self.retry_delay
        self.attempts[-1] = replace(self.attempts[-1], delay=delay)
        logger.warning(
            "Database connection failed. Retrying in %.0f seconds... (%d/%d)",
            delay,
            retry_state.attempt_number,
            self.max_retries,
        )
