"""User prompts as cancellable futures.

The editor asks for a string (a text label, a dimension label) and gets back a
``concurrent.futures.Future`` that the UI resolves with the answer, or with ``None`` when the
user cancels. The gesture recognizer waits in ``awaiting_input`` until the future is done.
"""

from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass


@dataclass(frozen=True)
class PromptRequest:
    """A request for one line of text from the user."""

    message: str
    default: str = ""


Prompter = Callable[[PromptRequest], "Future[str | None]"]


class FuturePrompter:
    """Prompter for an interactive UI: hands out one pending future at a time."""

    def __init__(self) -> None:
        self.request: PromptRequest | None = None
        self._future: Future[str | None] | None = None

    def __call__(self, request: PromptRequest) -> "Future[str | None]":
        if self.pending:
            raise RuntimeError("A prompt is already waiting for an answer")
        self.request = request
        self._future = Future()
        return self._future

    @property
    def pending(self) -> bool:
        return self._future is not None and not self._future.done()

    def answer(self, value: str | None) -> None:
        """Resolve the pending prompt. ``None`` means the user cancelled."""
        if not self.pending:
            return
        future = self._future
        self.request = None
        self._future = None
        future.set_result(value)

    def cancel(self) -> None:
        self.answer(None)

