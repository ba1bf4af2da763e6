"""Error taxonomy shared by the generation and recycling pipelines.

Malformed model output is not an error here: the normalizer logs it and
always returns a best-effort record.
"""


class ContentFlowError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(ContentFlowError):
    """Request rejected before any provider call was made."""


class ProviderError(ContentFlowError):
    """The completion provider failed: network error, bad status or empty body."""

    def __init__(self, message: str, platform: str | None = None, model: str | None = None):
        super().__init__(message)
        self.platform = platform
        self.model = model

    def __str__(self) -> str:
        base = super().__str__()
        context = ", ".join(
            f"{k}={v}" for k, v in (("platform", self.platform), ("model", self.model)) if v
        )
        return f"{base} ({context})" if context else base


class UnknownModelError(ContentFlowError):
    """No pricing entry for a model. Indicates misconfiguration."""

    def __init__(self, model: str):
        super().__init__(f"Unknown model: {model}")
        self.model = model
