"""Transcription provider base class."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class TranscriptionRequest:
    """One asynchronous speech-transcription job."""

    input_uri: str
    output_uri: str
    language_code: str = "en-US"
    enable_automatic_punctuation: bool = True


class TranscriptionProvider(ABC):
    """Submits long-running transcription jobs.

    The engine writes its result to `output_uri` on its own; `submit` only has
    to get the job accepted.
    """

    @abstractmethod
    async def submit(self, request: TranscriptionRequest) -> str:
        """Submit a job and return the engine's operation name.

        Raises:
            ProviderError: The engine rejected the job or was unreachable.
        """
        ...

    async def close(self) -> None:
        return None
