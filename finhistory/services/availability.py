"""
Availability classifier.

Decides whether a failure means "the live store could not be reached"
(serve the demo dataset on reads, 503 on writes) or is a genuine data
error that must propagate.

Failures arrive in several shapes: OS-level socket errors, asyncpg
connection errors, SQLAlchemy wrappers exposing the driver error on
`.orig`, exceptions chained through `raise ... from ...`, and exception
groups. `classify_failure` walks all of them, cycle-safely, and maps the
first recognised signature to a `StoreFailure`. Anything unrecognised is
`StoreFailure.UNKNOWN`; it is never guessed to be an outage.
"""

import errno
import re
import socket
from enum import Enum

from finhistory.core.errors import DATABASE_NOT_CONFIGURED_MESSAGE


class StoreFailure(str, Enum):
    """Known unavailability signatures, plus the explicit UNKNOWN branch."""

    UNCONFIGURED = "unconfigured"
    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    HOST_NOT_FOUND = "host_not_found"
    CONNECTION_RESET = "connection_reset"
    HOST_UNREACHABLE = "host_unreachable"
    CONNECTION_TERMINATED = "connection_terminated"
    CONNECT_FAILED = "connect_failed"
    UNKNOWN = "unknown"


# Order matters only for which signature is reported; any match means unavailable.
MESSAGE_PATTERNS: tuple[tuple[re.Pattern[str], StoreFailure], ...] = (
    (re.compile(re.escape(DATABASE_NOT_CONFIGURED_MESSAGE), re.I), StoreFailure.UNCONFIGURED),
    (re.compile(r"ECONNREFUSED|connection refused", re.I), StoreFailure.CONNECTION_REFUSED),
    (re.compile(r"ETIMEDOUT|timed out", re.I), StoreFailure.TIMEOUT),
    (
        re.compile(r"ENOTFOUND|name or service not known|name resolution|nodename nor servname", re.I),
        StoreFailure.HOST_NOT_FOUND,
    ),
    (re.compile(r"ECONNRESET|connection reset", re.I), StoreFailure.CONNECTION_RESET),
    (re.compile(r"EHOSTUNREACH|host is unreachable|no route to host", re.I), StoreFailure.HOST_UNREACHABLE),
    (re.compile(r"connection terminated", re.I), StoreFailure.CONNECTION_TERMINATED),
    (
        re.compile(r"could not connect to server|failed to connect|connect call failed", re.I),
        StoreFailure.CONNECT_FAILED,
    ),
)

CODE_SIGNATURES: dict[str, StoreFailure] = {
    "ECONNREFUSED": StoreFailure.CONNECTION_REFUSED,
    "ETIMEDOUT": StoreFailure.TIMEOUT,
    "ENOTFOUND": StoreFailure.HOST_NOT_FOUND,
    "ECONNRESET": StoreFailure.CONNECTION_RESET,
    "EHOSTUNREACH": StoreFailure.HOST_UNREACHABLE,
}

TYPE_SIGNATURES: tuple[tuple[type[BaseException], StoreFailure], ...] = (
    (ConnectionRefusedError, StoreFailure.CONNECTION_REFUSED),
    (ConnectionResetError, StoreFailure.CONNECTION_RESET),
    (TimeoutError, StoreFailure.TIMEOUT),
    (socket.gaierror, StoreFailure.HOST_NOT_FOUND),
)


def classify_message(message: str) -> StoreFailure:
    """Match a failure message against the fixed pattern set."""
    for pattern, failure in MESSAGE_PATTERNS:
        if pattern.search(message):
            return failure
    return StoreFailure.UNKNOWN


def _classify_code(code: object) -> StoreFailure:
    if isinstance(code, int) and not isinstance(code, bool):
        code = errno.errorcode.get(code)
    if isinstance(code, str):
        return CODE_SIGNATURES.get(code.upper(), StoreFailure.UNKNOWN)
    return StoreFailure.UNKNOWN


def _classify_one(error: BaseException) -> StoreFailure:
    # Types first: socket.gaierror carries EAI_* numbers in errno, which collide with POSIX codes.
    for error_type, failure in TYPE_SIGNATURES:
        if isinstance(error, error_type):
            return failure

    for attr in ("errno", "code"):
        failure = _classify_code(getattr(error, attr, None))
        if failure is not StoreFailure.UNKNOWN:
            return failure

    return classify_message(str(error))


def _children(error: BaseException) -> list[object]:
    children: list[object] = []
    if error.__cause__ is not None:
        children.append(error.__cause__)
    orig = getattr(error, "orig", None)
    if orig is not None:
        children.append(orig)
    for attr in ("exceptions", "errors"):
        nested = getattr(error, attr, None)
        if isinstance(nested, (list, tuple)):
            children.extend(nested)
    return children


def classify_failure(error: object) -> StoreFailure:
    """
    Classify an arbitrary failure value.

    Inspects, depth-first: the exception's type, its errno / code value, its
    message, then its explicit cause (``raise ... from``), a wrapped driver
    error (``.orig``) and every member of an exception group. Implicit
    context (``__context__``) is not followed. Never raises.
    """
    seen: set[int] = set()
    stack: list[object] = [error]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))

        if isinstance(current, BaseException):
            failure = _classify_one(current)
            if failure is not StoreFailure.UNKNOWN:
                return failure
            # Reverse so the first child is inspected first.
            stack.extend(reversed(_children(current)))
        elif isinstance(current, str):
            failure = classify_message(current)
            if failure is not StoreFailure.UNKNOWN:
                return failure
    return StoreFailure.UNKNOWN


def is_store_unavailable(error: object) -> bool:
    """True when `error` carries a recognised unavailability signature."""
    return classify_failure(error) is not StoreFailure.UNKNOWN
