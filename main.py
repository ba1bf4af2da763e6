"""ContentFlow - Telegram Bot entry point."""
import logging
import sys

from telegram import BotCommand
from telegram.ext import Application, CommandHandler

import db
from config import settings
from bot.handlers import (
    cmd_start,
    cmd_help,
    cmd_whoami,
    cmd_generate,
    cmd_recycle,
    cmd_costs,
)

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def _set_commands(app: Application) -> None:
    await app.bot.set_my_commands([
        BotCommand("generate", "Stream one post: <platform> [tone] <topic>"),
        BotCommand("recycle",  "Turn a text into every platform format"),
        BotCommand("costs",    "Today's spend and alert level"),
        BotCommand("help",     "Show all commands"),
        BotCommand("whoami",   "Show your Telegram ID"),
    ])


def main() -> None:
    if not settings.telegram_bot_token:
        logger.error("TELEGRAM_BOT_TOKEN is not set.")
        sys.exit(1)

    db.CostStore()  # creates the schema
    logger.info("Cost ledger initialized at %s.", settings.db_path)

    app = (
        Application.builder()
        .token(settings.telegram_bot_token)
        .post_init(_set_commands)
        .build()
    )

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("whoami", cmd_whoami))
    app.add_handler(CommandHandler("generate", cmd_generate))
    app.add_handler(CommandHandler("recycle", cmd_recycle))
    app.add_handler(CommandHandler("costs", cmd_costs))

    logger.info("Polling mode.")
    app.run_polling(drop_pending_updates=True)


if __name__ == "__main__":
    main()
