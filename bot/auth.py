import json
import logging
from pathlib import Path

from config import settings

logger = logging.getLogger(__name__)


class Auth:
    """Allow-list of Telegram users, read from a JSON file on every check."""

    def __init__(self, config_path: str | None = None):
        self._path = Path(config_path or settings.users_config)

    def _load(self) -> list[dict]:
        try:
            data = json.loads(self._path.read_text())
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as exc:
            logger.error("Invalid users config %s: %s", self._path, exc)
            return []
        return data.get("authorized_users", [])

    def is_authorized(self, user_id: int) -> bool:
        return any(u.get("id") == user_id for u in self._load())


auth = Auth()
