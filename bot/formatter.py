"""Format generation and recycling results as Telegram MarkdownV2 messages."""
import re

from agent.models import CostBreakdown, DailyCostSummary, FormatRecord, RecyclingCost
from agent.modules.cost import CostAlert

# Characters that must be escaped in MarkdownV2
_ESCAPE_CHARS = r"\_*[]()~`>#+-=|{}.!"


def escape(text: str) -> str:
    """Escape special characters for Telegram MarkdownV2."""
    return re.sub(r"([" + re.escape(_ESCAPE_CHARS) + r"])", r"\\\1", text)


_PLATFORM_ICONS = {
    "linkedin": "💼",
    "twitter": "🐦",
    "instagram": "📸",
    "facebook": "📘",
    "blog": "📝",
    "email": "📧",
    "quotes": "💬",
}

_MAX_MESSAGE_CHARS = 4000  # leave headroom below 4096


def _header(platform: str) -> str:
    icon = _PLATFORM_ICONS.get(platform, "📄")
    separator = escape("─" * 17)
    return f"{icon} *{escape(platform.capitalize())}*\n{separator}\n"


def format_record(record: FormatRecord) -> list[str]:
    """Messages for one recycled format, split if too long."""
    lines = [_header(record.platform)]

    email = record.metadata.get("email") if isinstance(record.metadata, dict) else None
    if email and email.get("subject"):
        lines.append(f"*Subject:* {escape(str(email['subject']))}\n\n")

    if isinstance(record.content, list):
        for i, quote in enumerate(record.content, 1):
            lines.append(f"{i}\\. {escape(quote.quote)} _\\({quote.length}\\)_\n")
    else:
        lines.append(escape(record.content))

    if record.hashtags:
        tags = " ".join(t if t.startswith("#") else f"#{t}" for t in record.hashtags)
        lines.append(f"\n\n{escape(tags)}")

    counts = record.character_count
    count_str = ", ".join(str(c) for c in counts) if isinstance(counts, list) else str(counts)
    flag = " ⚠️ over limit" if record.over_limit else ""
    lines.append(f"\n\n_{escape(f'Characters: {count_str}{flag}')}_")
    return _split_message("".join(lines))


def format_recycling_cost(cost: RecyclingCost, requested: int) -> str:
    lines = [
        "💰 *Recycling cost*",
        "",
        f"Formats: {len(cost.platform_breakdown)}/{requested}",
        f"Tokens: {cost.total_input_tokens} in / {cost.total_output_tokens} out",
        f"Total: `{escape(f'${cost.total_cost:.4f}')}`",
    ]
    for platform, pc in cost.platform_breakdown.items():
        lines.append(escape(f"  {platform}: {pc.tokens} tokens, ${pc.cost:.4f}"))
    return "\n".join(lines)


def format_generation_cost(cost: CostBreakdown) -> str:
    return escape(
        f"💰 {cost.input_tokens} in / {cost.output_tokens} out tokens, "
        f"${cost.total_cost:.4f} ({cost.model})"
    )


def format_daily_costs(summary: DailyCostSummary | None, alert: CostAlert) -> str:
    if summary is None:
        return "No costs recorded today\\."
    lines = [
        f"📊 *Costs for {escape(summary.date)}*",
        "",
        f"Requests: {summary.request_count}",
        f"Total: `{escape(f'${summary.total_cost:.4f}')}`",
        f"Model: `{escape(summary.model)}`",
    ]
    if alert.should_alert:
        icon = "🔴" if alert.level == "danger" else "🟡"
        lines += ["", f"{icon} {escape(alert.message)}"]
    return "\n".join(lines)


def _split_message(text: str, max_len: int = _MAX_MESSAGE_CHARS) -> list[str]:
    if len(text) <= max_len:
        return [text]
    chunks = []
    while text:
        cut = min(max_len, len(text))
        # Never split right after an escape backslash.
        while cut < len(text) and cut > 1 and text[cut - 1] == "\\":
            cut -= 1
        chunks.append(text[:cut])
        text = text[cut:]
    return chunks
