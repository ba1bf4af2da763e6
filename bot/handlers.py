"""All Telegram command handlers."""
import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager
from functools import lru_cache
from time import monotonic

from telegram import Update
from telegram.constants import ChatAction, ParseMode
from telegram.error import BadRequest
from telegram.ext import ContextTypes

import db
from agent.errors import ContentFlowError, ValidationError
from agent.formats import GENERATION_PLATFORMS, RECYCLING_PLATFORMS
from agent.llm import LLMClient, get_llm_client
from agent.models import GenerationRequest, RecyclingRequest, Tone
from agent.modules.cost import CostLedger
from agent.modules.generate import ContentGenerator, parse_generation_request
from agent.modules.recycle import RecyclingOrchestrator
from agent.modules.stream import Failed, Finished, Progress
from bot import formatter
from bot.auth import auth
from config import settings

logger = logging.getLogger(__name__)

_RATE_LIMIT_WINDOW_SECONDS = settings.rate_limit_window_seconds
_RATE_LIMIT_PER_WINDOW = settings.rate_limit_per_window

_DEFAULT_AUDIENCE = "general audience"
_EDIT_INTERVAL_SECONDS = 1.5  # Telegram throttles frequent edits
_STREAM_PREVIEW_CHARS = 4000

_GENERIC_GENERATE_ERR = "❌ Generation failed. Please try again shortly."
_GENERIC_RECYCLE_ERR = "❌ Recycling failed. Please try again shortly."

_rate_limit_buckets: dict[tuple[int, str], deque[float]] = {}


@lru_cache(maxsize=1)
def _llm() -> LLMClient:
    return get_llm_client()


@lru_cache(maxsize=1)
def _ledger() -> CostLedger:
    return CostLedger(
        db.CostStore(),
        warning=settings.cost_warning_threshold,
        danger=settings.cost_danger_threshold,
    )


@asynccontextmanager
async def _typing(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    """Sends TYPING chat action repeatedly until the block exits.

    Telegram expires the indicator after ~5 s, so we refresh every 4 s.
    """
    stop = asyncio.Event()

    async def _loop():
        while not stop.is_set():
            try:
                await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
            except Exception as exc:
                logger.debug("send_chat_action failed: %s", exc)
            try:
                await asyncio.wait_for(stop.wait(), timeout=4)
            except asyncio.TimeoutError:
                pass

    task = asyncio.create_task(_loop())
    try:
        yield
    finally:
        stop.set()
        await asyncio.gather(task, return_exceptions=True)

_UNAUTHORIZED_MSG = (
    "You don't have access to this bot.\n\n"
    "Your Telegram ID: `{user_id}`\n\n"
    "Send this ID to the admin to request access.\n"
    "Use /whoami at any time to see your ID."
)


# ── helpers ───────────────────────────────────────────────────────────────────

def _uid(update: Update) -> int:
    return update.effective_user.id


def _cid(update: Update) -> int:
    return update.effective_chat.id


def _is_auth(update: Update) -> bool:
    return auth.is_authorized(_uid(update))


def _check_rate_limit(user_id: int, action: str, limit: int) -> tuple[bool, int]:
    """Return (allowed, retry_after_seconds) for user-action pair."""
    now = monotonic()
    key = (user_id, action)
    bucket = _rate_limit_buckets.setdefault(key, deque())
    window_start = now - _RATE_LIMIT_WINDOW_SECONDS

    while bucket and bucket[0] <= window_start:
        bucket.popleft()

    if len(bucket) >= limit:
        retry_after = int(_RATE_LIMIT_WINDOW_SECONDS - (now - bucket[0])) + 1
        return False, max(retry_after, 1)

    bucket.append(now)
    return True, 0


async def _deny_rate_limit(update: Update, retry_after_seconds: int) -> None:
    await update.message.reply_text(
        f"⏳ Too many requests. Please retry in about {retry_after_seconds}s."
    )


async def _deny(update: Update) -> None:
    await update.message.reply_text(
        _UNAUTHORIZED_MSG.format(user_id=_uid(update)),
        parse_mode=ParseMode.MARKDOWN,
    )


async def _guard(update: Update, action: str) -> bool:
    """Authorization plus per-user rate limit; replies and returns False on denial."""
    if not _is_auth(update):
        await _deny(update)
        return False
    allowed, retry_after = _check_rate_limit(_uid(update), action, _RATE_LIMIT_PER_WINDOW)
    if not allowed:
        await _deny_rate_limit(update, retry_after)
        return False
    return True


def parse_generate_args(args: list[str]) -> GenerationRequest:
    """``<platform> [tone] <topic...>``; the tone word is optional."""
    if len(args) < 2:
        raise ValidationError("Usage: /generate <platform> [tone] <topic>")
    platform, rest = args[0].lower(), args[1:]
    tone = Tone.PROFESSIONAL.value
    if len(rest) > 1 and rest[0].lower() in {t.value for t in Tone}:
        tone, rest = rest[0].lower(), rest[1:]
    return parse_generation_request({
        "platform": platform,
        "tone": tone,
        "targetAudience": _DEFAULT_AUDIENCE,
        "topic": " ".join(rest),
    })


async def _safe_edit(message, text: str) -> None:
    try:
        await message.edit_text(text)
    except BadRequest as exc:
        # "Message is not modified" is expected when nothing new arrived.
        logger.debug("edit_text skipped: %s", exc)


# ── /start ────────────────────────────────────────────────────────────────────

async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(
        "👋 Welcome to *ContentFlow*\n\n"
        "Generate platform\\-ready posts and recycle long texts into many formats\\.\n\n"
        "Send /help to see all available commands\\.",
        parse_mode=ParseMode.MARKDOWN_V2,
    )


# ── /help ─────────────────────────────────────────────────────────────────────

async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    generation = formatter.escape(", ".join(GENERATION_PLATFORMS))
    recycling = formatter.escape(", ".join(RECYCLING_PLATFORMS))
    text = (
        "📖 *Commands*\n\n"
        "*Content*\n"
        "/generate \\<platform\\> \\[tone\\] \\<topic\\> \\- Stream one post\n"
        f"  platforms: {generation}\n"
        "/recycle \\<text\\> \\- Turn a text into every format\n"
        f"  formats: {recycling}\n\n"
        "*Costs*\n"
        "/costs \\- Today's spend and alert level\n\n"
        "*Other*\n"
        "/whoami \\- Show your Telegram ID"
    )
    await update.message.reply_text(text, parse_mode=ParseMode.MARKDOWN_V2)


# ── /whoami ───────────────────────────────────────────────────────────────────

async def cmd_whoami(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    uid = _uid(update)
    status = "✅ Authorized" if auth.is_authorized(uid) else "❌ Unauthorized"
    text = (
        f"Your Telegram ID: `{uid}`\n"
        f"Status: {status}\n\n"
        "Share this ID with the admin to request access."
    )
    await update.message.reply_text(text, parse_mode=ParseMode.MARKDOWN)


# ── /generate ─────────────────────────────────────────────────────────────────

async def cmd_generate(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not await _guard(update, "generate"):
        return

    try:
        request = parse_generate_args(context.args or [])
    except ValidationError as exc:
        await update.message.reply_text(f"⚠️ {exc}")
        return

    status_msg = await update.message.reply_text("✍️ Writing…")
    generator = ContentGenerator(_llm(), _ledger(), max_tokens=settings.generation_max_tokens)
    cancel_event = asyncio.Event()
    text = ""
    last_edit = monotonic()

    try:
        async with _typing(context, _cid(update)):
            updates = generator.generate(request, cancel_event=cancel_event)
            try:
                async for item in updates:
                    if isinstance(item, Progress):
                        text += item.text
                        if monotonic() - last_edit >= _EDIT_INTERVAL_SECONDS:
                            await _safe_edit(status_msg, f"{text[:_STREAM_PREVIEW_CHARS]} ▌")
                            last_edit = monotonic()
                    elif isinstance(item, Finished):
                        await _safe_edit(status_msg, item.content[:_STREAM_PREVIEW_CHARS])
                        await update.message.reply_text(
                            formatter.format_generation_cost(item.cost),
                            parse_mode=ParseMode.MARKDOWN_V2,
                        )
                    elif isinstance(item, Failed):
                        logger.warning("Generation failed for user %s: %s", _uid(update), item.reason)
                        await _safe_edit(status_msg, _GENERIC_GENERATE_ERR)
            finally:
                cancel_event.set()
                await updates.aclose()
    except ContentFlowError as exc:
        logger.error("Generation aborted: %s", exc)
        await _safe_edit(status_msg, _GENERIC_GENERATE_ERR)


# ── /recycle ──────────────────────────────────────────────────────────────────

async def cmd_recycle(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not await _guard(update, "recycle"):
        return

    content = " ".join(context.args) if context.args else ""
    request = RecyclingRequest(content=content)
    orchestrator = RecyclingOrchestrator(
        _llm(),
        _ledger(),
        max_tokens=settings.recycling_max_tokens,
        max_content_chars=settings.max_content_chars,
    )
    try:
        orchestrator.validate(request)
    except ValidationError as exc:
        await update.message.reply_text(f"⚠️ {exc}\nUsage: /recycle <text>")
        return

    status_msg = await update.message.reply_text("♻️ Recycling, please wait…")
    try:
        async with _typing(context, _cid(update)):
            result = await orchestrator.recycle(request)
    except ContentFlowError:
        logger.exception("Recycling failed")
        await status_msg.edit_text(_GENERIC_RECYCLE_ERR)
        return

    if not result.success or result.recycled_content is None:
        logger.warning("Recycling unsuccessful: %s", result.error)
        await status_msg.edit_text(_GENERIC_RECYCLE_ERR)
        return

    bundle = result.recycled_content
    if not bundle.formats:
        await status_msg.edit_text("⚠️ No format could be produced. Please try again.")
        return

    await status_msg.edit_text(f"✅ Generated {len(bundle.formats)} format(s)")
    for record in bundle.formats:
        for chunk in formatter.format_record(record):
            await update.message.reply_text(chunk, parse_mode=ParseMode.MARKDOWN_V2)
    await update.message.reply_text(
        formatter.format_recycling_cost(bundle.cost, requested=len(RECYCLING_PLATFORMS)),
        parse_mode=ParseMode.MARKDOWN_V2,
    )


# ── /costs ────────────────────────────────────────────────────────────────────

async def cmd_costs(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not _is_auth(update):
        await _deny(update)
        return

    ledger = _ledger()
    summary = await asyncio.to_thread(ledger.summary)
    alert = await asyncio.to_thread(ledger.alert)
    await update.message.reply_text(
        formatter.format_daily_costs(summary, alert),
        parse_mode=ParseMode.MARKDOWN_V2,
    )
