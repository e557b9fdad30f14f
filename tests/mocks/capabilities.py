"""In-memory capability fakes for testing the orchestrator without a terminal."""

import asyncio

from fileops.execution.capabilities import ConfirmationRequest, Notification


class FakeConfirmation:
    """Confirmation provider with a scripted answer.

    Records every request. Can be told to raise instead of answering, or to
    wait on an event so tests can observe a batch that is mid-confirmation.
    """

    def __init__(
        self,
        answer: bool = True,
        error: BaseException | None = None,
        wait_for: asyncio.Event | None = None,
    ):
        """Initialize fake confirmation.

        Args:
            answer: Value returned from confirm
            error: Exception raised from confirm instead of answering
            wait_for: Event awaited before answering
        """
        self.answer = answer
        self.error = error
        self.wait_for = wait_for
        self.requests: list[ConfirmationRequest] = []

    async def confirm(self, request: ConfirmationRequest) -> bool:
        self.requests.append(request)
        if self.wait_for is not None:
            await self.wait_for.wait()
        if self.error is not None:
            raise self.error
        return self.answer


class RecordingNotifier:
    """Notifier that keeps everything it is given."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []
        self.refreshes = 0

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def refresh(self) -> None:
        self.refreshes += 1

    @property
    def last(self) -> Notification:
        return self.notifications[-1]


class FakeEditor:
    """Editor sync with a fixed set of open paths."""

    def __init__(self, open_paths: set[str] | None = None):
        self.open_paths = set(open_paths or ())
        self.reloaded: list[str] = []
        self.closed: list[str] = []

    def is_open(self, path: str) -> bool:
        return path in self.open_paths

    def reload(self, path: str) -> None:
        self.reloaded.append(path)

    def close(self, path: str) -> None:
        self.closed.append(path)
        self.open_paths.discard(path)
