"""Generic poll loop for asynchronous remote jobs.

A service supplies a *classifier*: any callable that turns the raw text of a
status response into a PollOutcome. The loop keeps requesting the status
endpoint until the classifier says Finished or Failed, sleeping without
blocking the event loop in between.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from .errors import JobCancelledError, JobTimeoutError, RemoteJobFailedError
from .http_client import EbioticClient, FormData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Finished:
    pass


@dataclass(frozen=True)
class Running:
    delay: float


@dataclass(frozen=True)
class Failed:
    reason: str
    status: Optional[str] = None


PollOutcome = Union[Finished, Running, Failed]
Classifier = Callable[[str], PollOutcome]
Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class JobHandle:
    """Identifier of a submitted remote job."""

    job_id: str
    estimated_seconds: Optional[int] = None


class Service(Protocol):
    """Anything that can run one request against a remote service."""

    async def run(self, input, client: Optional[EbioticClient] = None): ...


def _check_cancelled(cancel: Optional[asyncio.Event], url: str) -> None:
    if cancel is not None and cancel.is_set():
        raise JobCancelledError(f"Polling {url} was cancelled")


async def _sleep_unless_cancelled(
    sleep: Sleep, delay: float, cancel: Optional[asyncio.Event]
) -> None:
    """Sleep for ``delay`` seconds, waking early if ``cancel`` is set."""
    if cancel is None:
        await sleep(delay)
        return

    sleeper = asyncio.ensure_future(sleep(delay))
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if sleeper.done():
            # Surface errors raised by the sleep function
            sleeper.result()
    finally:
        sleeper.cancel()
        waiter.cancel()


async def poll(
    client: EbioticClient,
    url: str,
    classify: Classifier,
    *,
    form: Optional[FormData] = None,
    timeout: Optional[float] = None,
    cancel: Optional[asyncio.Event] = None,
    sleep: Sleep = asyncio.sleep,
) -> str:
    """
    Request ``url`` until ``classify`` reports a terminal state.

    Args:
        client: Shared HTTP client.
        url: Status endpoint.
        classify: Maps a raw status response to a PollOutcome.
        form: If given, each attempt re-POSTs this form instead of a GET.
        timeout: Overall deadline in seconds, None for no deadline.
        cancel: Event checked before every request; setting it also ends a
            sleep in progress.
        sleep: Coroutine used to wait between attempts.

    Returns:
        The raw text of the response classified as Finished.

    Raises:
        RemoteJobFailedError: the classifier returned Failed.
        JobCancelledError: ``cancel`` was set.
        JobTimeoutError: ``timeout`` elapsed while the job was still running.
        NetworkError: a status request failed; it is not retried here.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    attempts = 0

    while True:
        _check_cancelled(cancel, url)
        if form is None:
            response = await client.get(url)
        else:
            response = await client.post_form(url, form)
        attempts += 1

        outcome = classify(response)
        if isinstance(outcome, Finished):
            logger.info("Job at %s finished after %d status checks", url, attempts)
            return response
        if isinstance(outcome, Failed):
            raise RemoteJobFailedError(outcome.reason, status=outcome.status)

        delay = outcome.delay
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise JobTimeoutError(
                    f"Job at {url} still running after {timeout}s ({attempts} status checks)"
                )
            delay = min(delay, remaining)

        logger.info("Job is still running, sleeping for %s seconds", delay)
        await _sleep_unless_cancelled(sleep, delay, cancel)
        _check_cancelled(cancel, url)
