"""Data records passed between the pipeline stages.

Wire shapes (``to_dict``) use the camelCase keys the HTTP clients expect.
"""
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Tone(str, Enum):
    PROFESSIONAL = "professional"
    CASUAL = "casual"
    FRIENDLY = "friendly"
    AUTHORITATIVE = "authoritative"
    INSPIRATIONAL = "inspirational"
    HUMOROUS = "humorous"
    EDUCATIONAL = "educational"
    CONVERSATIONAL = "conversational"


RECYCLING_TONES = (Tone.PROFESSIONAL, Tone.CASUAL, Tone.FRIENDLY, Tone.AUTHORITATIVE)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_record_id(prefix: str = "recycled") -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


# ── requests ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GenerationRequest:
    topic: str
    tone: Tone
    target_audience: str
    platform: str
    additional_context: str | None = None

    def input_text(self) -> str:
        """Text the input-token estimate is computed from."""
        return f"{self.topic} {self.target_audience} {self.additional_context or ''}"


@dataclass(frozen=True)
class RecyclingRequest:
    content: str
    platforms: tuple[str, ...] | None = None
    tone: Tone = Tone.PROFESSIONAL
    industry: str | None = None


# ── stream events ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Delta:
    text: str


@dataclass(frozen=True)
class Complete:
    pass


@dataclass(frozen=True)
class Failure:
    reason: str


StreamEvent = Delta | Complete | Failure


# ── cost ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CostBreakdown:
    input_tokens: int
    output_tokens: int
    input_cost: float
    output_cost: float
    total_cost: float
    model: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "inputCost": self.input_cost,
            "outputCost": self.output_cost,
            "totalCost": self.total_cost,
            "model": self.model,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class PlatformCost:
    tokens: int
    cost: float


@dataclass(frozen=True)
class RecyclingCost:
    total_input_tokens: int
    total_output_tokens: int
    total_cost: float
    platform_breakdown: dict[str, PlatformCost]

    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens

    def to_dict(self) -> dict:
        return {
            "totalInputTokens": self.total_input_tokens,
            "totalOutputTokens": self.total_output_tokens,
            "totalTokens": self.total_tokens,
            "totalCost": self.total_cost,
            "platformBreakdown": {
                platform: {"tokens": pc.tokens, "cost": pc.cost}
                for platform, pc in self.platform_breakdown.items()
            },
        }


@dataclass
class DailyCostSummary:
    date: str
    total_cost: float = 0.0
    request_count: int = 0
    model: str = ""
    breakdown: list[CostBreakdown] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "totalCost": self.total_cost,
            "requestCount": self.request_count,
            "model": self.model,
            "breakdown": [b.to_dict() for b in self.breakdown],
        }


# ── recycling output ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Quote:
    quote: str
    length: int


@dataclass
class FormatRecord:
    """Normalized rendering of recycled content for one platform.

    Only ``content`` and ``is_edited`` change after creation, and only through
    ``edit`` by the caller that owns the record.
    """

    id: str
    platform: str
    content: str | list[Quote]
    character_count: int | list[int]
    hashtags: list[str] = field(default_factory=list)
    is_edited: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    over_limit: bool = False

    def edit(self, content: str) -> None:
        self.content = content
        self.character_count = len(content)
        self.is_edited = True

    def to_dict(self) -> dict:
        if isinstance(self.content, list):
            content: Any = [{"quote": q.quote, "length": q.length} for q in self.content]
        else:
            content = self.content
        return {
            "id": self.id,
            "platform": self.platform,
            "content": content,
            "characterCount": self.character_count,
            "hashtags": list(self.hashtags),
            "isEdited": self.is_edited,
            "metadata": self.metadata,
            "overLimit": self.over_limit,
        }


@dataclass
class RecycledBundle:
    id: str
    original_content: str
    formats: list[FormatRecord]
    cost: RecyclingCost
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "originalContent": self.original_content,
            "formats": [f.to_dict() for f in self.formats],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass
class RecyclingResult:
    success: bool
    recycled_content: RecycledBundle | None = None
    error: str | None = None

    @property
    def cost_data(self) -> RecyclingCost | None:
        return self.recycled_content.cost if self.recycled_content else None

    def to_dict(self) -> dict:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "recycledContent": self.recycled_content.to_dict(),
            "costData": self.cost_data.to_dict(),
        }
