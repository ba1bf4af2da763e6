from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass

from agent.models import StreamEvent


@dataclass
class LLMResponse:
    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""

    @property
    def tokens_used(self) -> int:
        return self.input_tokens + self.output_tokens


class LLMClient(ABC):
    """Abstract base for all LLM providers.

    Provider failures surface as ``ProviderError``; they are never turned
    into empty content.
    """

    model: str

    @abstractmethod
    async def complete(
        self,
        system: str,
        user: str,
        max_tokens: int = 2000,
        expect_json: bool = False,
    ) -> LLMResponse:
        """Send a single-turn completion request.

        expect_json: ask the provider for enforced JSON output when the model
        supports it; otherwise the prompt alone carries the constraint.
        """
        ...

    @abstractmethod
    def stream(self, system: str, user: str, max_tokens: int = 1000) -> AsyncIterator[StreamEvent]:
        """Stream a completion as ``Delta`` events followed by one terminal event.

        Terminal is ``Complete`` on success or a single ``Failure`` on any
        provider error. Closing the iterator closes the connection.
        """
        ...
