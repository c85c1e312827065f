"""
Cooperative cancellation for long running submissions.

A full standard-policy run can take minutes (150 resubmissions with up to 8
polls each), so every wait in the submission path goes through a CancelToken.
"""

import asyncio
from typing import Awaitable, TypeVar

from core.errors import SubmissionCancelledError

T = TypeVar("T")


class CancelToken:
    """Cancellation flag shared between a caller and one submission."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SubmissionCancelledError("Submission cancelled")

    async def sleep(self, delay: float) -> None:
        """Sleep for `delay` seconds, waking up early on cancellation."""
        self.raise_if_cancelled()
        if delay <= 0:
            await asyncio.sleep(0)
            self.raise_if_cancelled()
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise SubmissionCancelledError("Submission cancelled")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable`, abandoning it if the token is cancelled first."""
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise SubmissionCancelledError("Submission cancelled")
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        raise SubmissionCancelledError("Submission cancelled")
