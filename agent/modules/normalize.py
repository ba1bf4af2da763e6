"""
Turn raw completion text into a FormatRecord.

Models are asked for JSON but do not always comply, so this module never
raises. The JSON candidate is the span from the first "{" to the last "}".
Once parsed, the payload goes through a decoder chain; the first decoder
that recognises the shape wins:

    email   -> subject/greeting/intro/body/callToAction/signature
    quotes  -> "content" is an array of strings
    thread  -> "content" is an array of posts (thread platforms)
    generic -> "content" is a string, or an array joined with newlines

Anything else (no braces, invalid JSON, not an object) becomes a plain-text
record holding the raw response.
"""
import hashlib
import json
import logging
from collections.abc import Callable
from typing import Any

from agent.formats import RECYCLING_PLATFORMS, THREAD_PLATFORMS
from agent.models import FormatRecord, Quote

logger = logging.getLogger(__name__)

EMAIL_FIELDS = ("subject", "greeting", "intro", "body", "callToAction", "signature")
# Display order of the synthesized email text.
EMAIL_DISPLAY_FIELDS = ("greeting", "intro", "body", "callToAction", "signature")


def _counts(character_count: int | list[int]) -> list[int]:
    return character_count if isinstance(character_count, list) else [character_count]


def within_limit(record: FormatRecord) -> bool:
    """True if every character count respects the platform's soft maximum."""
    config = RECYCLING_PLATFORMS.get(record.platform)
    if config is None:
        return True
    return all(c <= config.max_characters for c in _counts(record.character_count))


def _hashtags(payload: dict) -> list[str]:
    tags = payload.get("hashtags")
    if not isinstance(tags, list):
        return []
    return [t for t in tags if isinstance(t, str)]


def _metadata(payload: dict) -> dict:
    meta = payload.get("metadata")
    return meta if isinstance(meta, dict) else {}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


# ── decoders ──────────────────────────────────────────────────────────────────
# Each returns (content, character_count, metadata) or None when the payload
# does not have its shape.

Decoded = tuple[Any, Any, dict]


def _decode_email(platform: str, payload: dict, raw: str) -> Decoded | None:
    if platform != "email" or not payload.get("subject"):
        return None
    email = {key: payload.get(key) for key in EMAIL_FIELDS}
    if payload.get("previewText"):
        email["previewText"] = payload["previewText"]
    content = "\n\n".join(_text(email[key]) for key in EMAIL_DISPLAY_FIELDS if email[key])
    return content, len(content), {"email": email}


def _decode_quotes(platform: str, payload: dict, raw: str) -> Decoded | None:
    items = payload.get("content")
    if platform != "quotes" or not isinstance(items, list):
        return None
    quotes = [Quote(quote=_text(q), length=len(_text(q))) for q in items]
    return quotes, [q.length for q in quotes], _metadata(payload)


def _decode_thread(platform: str, payload: dict, raw: str) -> Decoded | None:
    items = payload.get("content")
    if platform not in THREAD_PLATFORMS or not isinstance(items, list):
        return None
    posts = [_text(p) for p in items]
    content = "\n\n".join(posts)
    # The limit applies per post, so report the longest one.
    return content, max((len(p) for p in posts), default=0), _metadata(payload)


def _decode_generic(platform: str, payload: dict, raw: str) -> Decoded:
    content = payload.get("content")
    if isinstance(content, list):
        content = "\n".join(_text(c) for c in content)
    elif not content:
        content = raw
    else:
        content = _text(content)
    return content, len(content), _metadata(payload)


DECODERS: tuple[Callable[[str, dict, str], Decoded | None], ...] = (
    _decode_email,
    _decode_quotes,
    _decode_thread,
    _decode_generic,
)


# ── entry point ───────────────────────────────────────────────────────────────

def _json_candidate(raw: str) -> str | None:
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return None
    return raw[start:end + 1]


def content_id(raw: str, platform: str) -> str:
    digest = hashlib.sha256(f"{platform}\0{raw}".encode("utf-8")).hexdigest()
    return f"recycled_{digest[:16]}"


def _plain_record(raw: str, platform: str, record_id: str) -> FormatRecord:
    return _finish(FormatRecord(
        id=record_id,
        platform=platform,
        content=raw,
        character_count=len(raw),
    ))


def _finish(record: FormatRecord) -> FormatRecord:
    record.over_limit = not within_limit(record)
    return record


def normalize(raw: str | None, platform: str, record_id: str | None = None) -> FormatRecord:
    """Parse one completion into a FormatRecord. Never raises.

    Without ``record_id`` the id is derived from the platform and the raw
    text, so the same input always gives the same record.
    """
    raw = raw if isinstance(raw, str) else _text(raw)
    record_id = record_id or content_id(raw, platform)

    candidate = _json_candidate(raw)
    if candidate is None:
        logger.warning("No JSON object in %s response; keeping it as plain text", platform)
        return _plain_record(raw, platform, record_id)

    try:
        payload = json.loads(candidate)
    except (json.JSONDecodeError, RecursionError) as exc:
        logger.warning("Unparseable JSON in %s response (%s); keeping it as plain text", platform, exc)
        return _plain_record(raw, platform, record_id)

    if not isinstance(payload, dict):
        logger.warning("JSON in %s response is not an object; keeping it as plain text", platform)
        return _plain_record(raw, platform, record_id)

    for decoder in DECODERS:
        decoded = decoder(platform, payload, raw)
        if decoded is not None:
            break
    content, character_count, metadata = decoded

    return _finish(FormatRecord(
        id=record_id,
        platform=platform,
        content=content,
        character_count=character_count,
        hashtags=_hashtags(payload),
        metadata=metadata,
    ))
