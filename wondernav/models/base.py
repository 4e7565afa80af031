from abc import ABC, abstractmethod


class CompletionClient(ABC):
    """Turns one user input into generated text."""

    model_id: str

    @abstractmethod
    def complete(self, prompt: str, timeout_s: float) -> str:
        """Return the generated text for ``prompt``.

        Raises ``UpstreamError`` (or ``UpstreamTimeoutError``) on any failure,
        including a response with no usable text.
        """
