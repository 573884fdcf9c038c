"""Tests for the generic poll loop."""

import asyncio
import time

import pytest

from conftest import form_of
from ebiotic.errors import (
    JobCancelledError,
    JobTimeoutError,
    NetworkError,
    RemoteJobFailedError,
)
from ebiotic.polling import Failed, Finished, Running, poll

STATUS_URL = "https://www.ebi.ac.uk/Tools/services/rest/clustalo/status/job-1"


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def scripted(*outcomes):
    """Classifier returning ``outcomes`` in order, recording what it saw."""
    seen = []
    queue = list(outcomes)

    def classify(response):
        seen.append(response)
        return queue.pop(0)

    classify.seen = seen
    return classify


class TestPoll:
    def test_running_twice_then_finished(self, remote):
        """Returns the third response after exactly two sleeps."""
        for body in ("first", "second", "third"):
            remote.add("GET", STATUS_URL, text=body)
        classify = scripted(Running(0), Running(0), Finished())
        sleep = SleepRecorder()

        result = asyncio.run(poll(remote.client(), STATUS_URL, classify, sleep=sleep))

        assert result == "third"
        assert sleep.delays == [0, 0]
        assert classify.seen == ["first", "second", "third"]

    def test_failed_first_call(self, remote):
        """Fails immediately with no sleeps and no further requests."""
        remote.add("GET", STATUS_URL, text="ERROR")
        sleep = SleepRecorder()
        classify = scripted(Failed("job crashed", status="ERROR"))

        with pytest.raises(RemoteJobFailedError) as excinfo:
            asyncio.run(poll(remote.client(), STATUS_URL, classify, sleep=sleep))

        assert excinfo.value.status == "ERROR"
        assert "job crashed" in str(excinfo.value)
        assert sleep.delays == []
        assert len(remote.requests) == 1

    def test_suggested_delay_used(self, remote):
        remote.add("GET", STATUS_URL, text="RUNNING")
        sleep = SleepRecorder()
        classify = scripted(Running(3), Running(60), Finished())

        asyncio.run(poll(remote.client(), STATUS_URL, classify, sleep=sleep))
        assert sleep.delays == [3, 60]

    def test_repeat_post(self, remote):
        """With a form, every attempt re-POSTs the same body."""
        url = "https://blast.ncbi.nlm.nih.gov/Blast.cgi"
        remote.add("POST", url, text="Status=WAITING")
        form = [("CMD", "Get"), ("FORMAT_OBJECT", "SearchInfo"), ("RID", "R1")]
        classify = scripted(Running(0), Finished())

        asyncio.run(poll(remote.client(), url, classify, form=form, sleep=SleepRecorder()))

        assert len(remote.requests) == 2
        assert all(r.method == "POST" for r in remote.requests)
        assert all(form_of(r) == form for r in remote.requests)

    def test_network_error_aborts(self, remote):
        """A failed status request is not treated as still running."""
        remote.add("GET", STATUS_URL, text="RUNNING")
        remote.add("GET", STATUS_URL, text="unavailable", status=502)
        sleep = SleepRecorder()
        classify = scripted(Running(0), Finished())

        with pytest.raises(NetworkError):
            asyncio.run(poll(remote.client(), STATUS_URL, classify, sleep=sleep))
        assert sleep.delays == [0]


class TestCancellation:
    def test_cancel_before_first_request(self, remote):
        remote.add("GET", STATUS_URL, text="RUNNING")

        async def scenario():
            cancel = asyncio.Event()
            cancel.set()
            await poll(remote.client(), STATUS_URL, scripted(Finished()), cancel=cancel)

        with pytest.raises(JobCancelledError):
            asyncio.run(scenario())
        assert remote.requests == []

    def test_cancel_during_sleep(self, remote):
        """Setting the event while sleeping stops the loop before the next request."""
        remote.add("GET", STATUS_URL, text="RUNNING")

        async def scenario():
            cancel = asyncio.Event()

            async def sleep(delay):
                cancel.set()

            await poll(
                remote.client(),
                STATUS_URL,
                scripted(Running(5), Finished()),
                cancel=cancel,
                sleep=sleep,
            )

        with pytest.raises(JobCancelledError):
            asyncio.run(scenario())
        assert len(remote.requests) == 1

    def test_timeout(self, remote):
        remote.add("GET", STATUS_URL, text="RUNNING")
        sleep = SleepRecorder()

        with pytest.raises(JobTimeoutError):
            asyncio.run(
                poll(remote.client(), STATUS_URL, scripted(Running(5)), timeout=0, sleep=sleep)
            )
        assert sleep.delays == []

    def test_sleep_clipped_to_deadline(self, remote):
        remote.add("GET", STATUS_URL, text="RUNNING")
        sleep = SleepRecorder()

        asyncio.run(
            poll(
                remote.client(),
                STATUS_URL,
                scripted(Running(600), Finished()),
                timeout=30,
                sleep=sleep,
            )
        )
        assert len(sleep.delays) == 1
        assert 0 < sleep.delays[0] <= 30

    def test_task_cancellation_propagates(self, remote):
        """Cancelling the task interrupts a real sleep."""
        remote.add("GET", STATUS_URL, text="RUNNING")

        async def scenario():
            task = asyncio.create_task(
                poll(remote.client(), STATUS_URL, lambda _: Running(3600))
            )
            await asyncio.sleep(0.05)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                return task.cancelled()
            return False

        assert asyncio.run(scenario()) is True
        assert len(remote.requests) == 1

    def test_cancel_ends_real_sleep(self, remote):
        """Setting the event wakes a long asyncio.sleep immediately."""
        remote.add("GET", STATUS_URL, text="RUNNING")

        async def scenario():
            cancel = asyncio.Event()
            asyncio.get_running_loop().call_later(0.1, cancel.set)
            started = time.monotonic()
            with pytest.raises(JobCancelledError):
                await poll(remote.client(), STATUS_URL, lambda _: Running(30), cancel=cancel)
            return time.monotonic() - started

        assert asyncio.run(scenario()) < 5
        assert len(remote.requests) == 1

    def test_sleep_errors_propagate_with_cancel_event(self, remote):
        remote.add("GET", STATUS_URL, text="RUNNING")

        async def broken_sleep(delay):
            raise RuntimeError("clock broke")

        async def scenario():
            await poll(
                remote.client(),
                STATUS_URL,
                scripted(Running(1), Finished()),
                cancel=asyncio.Event(),
                sleep=broken_sleep,
            )

        with pytest.raises(RuntimeError, match="clock broke"):
            asyncio.run(scenario())
