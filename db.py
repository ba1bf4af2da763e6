import sqlite3
from pathlib import Path

from agent.models import CostBreakdown


def _db_path() -> Path:
    from config import settings
    return Path(settings.db_path).expanduser()


class CostStore:
    """sqlite-backed storage for daily cost entries.

    Durability is best-effort: each append is its own transaction and there
    is no cross-process locking beyond what sqlite provides.
    """

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path).expanduser() if path else _db_path()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self.init_db()

    def get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path))
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        with self.get_conn() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS cost_entries (
                    id            INTEGER PRIMARY KEY AUTOINCREMENT,
                    day           TEXT    NOT NULL,
                    created_at    TEXT    NOT NULL,
                    model         TEXT    NOT NULL,
                    input_tokens  INTEGER NOT NULL,
                    output_tokens INTEGER NOT NULL,
                    input_cost    REAL    NOT NULL,
                    output_cost   REAL    NOT NULL,
                    total_cost    REAL    NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_cost_entries_day ON cost_entries(day);
            """)

    # ── cost_entries ──────────────────────────────────────────────────────────

    def save_entry(self, day: str, breakdown: CostBreakdown) -> int:
        with self.get_conn() as conn:
            cur = conn.execute(
                """INSERT INTO cost_entries
                   (day, created_at, model, input_tokens, output_tokens,
                    input_cost, output_cost, total_cost)
                   VALUES (?,?,?,?,?,?,?,?)""",
                (
                    day,
                    breakdown.timestamp.isoformat(),
                    breakdown.model,
                    breakdown.input_tokens,
                    breakdown.output_tokens,
                    breakdown.input_cost,
                    breakdown.output_cost,
                    breakdown.total_cost,
                ),
            )
            return cur.lastrowid

    def get_entries(self, day: str) -> list[dict]:
        with self.get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM cost_entries WHERE day=? ORDER BY id",
                (day,),
            ).fetchall()
        return [dict(r) for r in rows]

    def delete_day(self, day: str) -> int:
        with self.get_conn() as conn:
            cur = conn.execute("DELETE FROM cost_entries WHERE day=?", (day,))
            return cur.rowcount
