"""SQLite storage implementation."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..message_bus import parse_message, serialize_message
from ..models import (
    BROADCAST,
    AgentMessage,
    AgentRunResult,
    CoordinatorRunResult,
    PRAction,
    PRDecision,
    RunStatus,
)


class IStorage(Protocol):
    """Durable storage for messages, PR decisions and run results."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Messages
    async def save_message(self, message: AgentMessage, path: str) -> None:
        """Save a message under its computed path."""
        ...

    async def get_message(self, message_id: str) -> AgentMessage | None:
        """Get a message by id."""
        ...

    async def get_messages_for_agent(
        self,
        agent_id: str,
        after: datetime | None = None,
        limit: int | None = None,
    ) -> list[AgentMessage]:
        """Messages addressed to an agent (directly or by broadcast)."""
        ...

    # Decisions
    async def save_decision(self, decision: PRDecision) -> None:
        """Append a decision to the decision log."""
        ...

    async def get_decisions(
        self, pr_number: int | None = None, limit: int = 100
    ) -> list[PRDecision]:
        """Get decisions (newest first)."""
        ...

    # Runs
    async def save_run(self, result: CoordinatorRunResult) -> None:
        """Append a coordinator run result."""
        ...

    async def get_runs(self, limit: int = 100) -> list[CoordinatorRunResult]:
        """Get run results (newest first)."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Messages
    async def save_message(self, message: AgentMessage, path: str) -> None:
        """Save a message under its computed path."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO messages
            (id, path, sender, target, type, body, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                message.id,
                path,
                message.sender,
                message.target,
                message.type.value,
                serialize_message(message),
                _to_utc_text(message.timestamp),
            ),
        )
        await conn.commit()

    async def get_message(self, message_id: str) -> AgentMessage | None:
        """Get a message by id."""
        conn = self._require_conn()

        cursor = await conn.execute(
            "SELECT body FROM messages WHERE id = ?", (message_id,)
        )
        row = await cursor.fetchone()
        return parse_message(row[0]) if row else None

    async def get_messages_for_agent(
        self,
        agent_id: str,
        after: datetime | None = None,
        limit: int | None = None,
    ) -> list[AgentMessage]:
        """Messages addressed to an agent, oldest first.

        Broadcasts sent by the agent itself are excluded. With a limit only
        the newest ``limit`` messages are returned.
        """
        conn = self._require_conn()

        conditions = ["(target = ? OR (target = ? AND sender != ?))"]
        params: list = [agent_id, BROADCAST, agent_id]
        if after:
            conditions.append("timestamp > ?")
            params.append(_to_utc_text(after))

        limit_clause = ""
        if limit is not None:
            limit_clause = "LIMIT ?"
            params.append(limit)

        cursor = await conn.execute(
            f"""
            SELECT body FROM messages
            WHERE {' AND '.join(conditions)}
            ORDER BY timestamp DESC, rowid DESC
            {limit_clause}
            """,
            params,
        )
        rows = await cursor.fetchall()
        return [parse_message(row[0]) for row in reversed(rows)]

    # Decisions
    async def save_decision(self, decision: PRDecision) -> None:
        """Append a decision to the decision log."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO pr_decisions
            (pr_number, action, reason, wait_conditions, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                decision.pr_number,
                decision.action.value,
                decision.reason,
                json.dumps(decision.wait_conditions)
                if decision.wait_conditions is not None
                else None,
                _to_utc_text(decision.timestamp),
            ),
        )
        await conn.commit()

    async def get_decisions(
        self, pr_number: int | None = None, limit: int = 100
    ) -> list[PRDecision]:
        """Get decisions (newest first), optionally for one PR."""
        conn = self._require_conn()

        where_clause = "WHERE pr_number = ?" if pr_number is not None else ""
        params: list = [pr_number] if pr_number is not None else []
        params.append(limit)

        cursor = await conn.execute(
            f"""
            SELECT pr_number, action, reason, wait_conditions, timestamp
            FROM pr_decisions
            {where_clause}
            ORDER BY seq DESC
            LIMIT ?
            """,
            params,
        )
        rows = await cursor.fetchall()

        return [
            PRDecision(
                pr_number=row[0],
                action=PRAction(row[1]),
                reason=row[2],
                wait_conditions=json.loads(row[3]) if row[3] else None,
                timestamp=_from_utc_text(row[4]),
            )
            for row in rows
        ]

    # Runs
    async def save_run(self, result: CoordinatorRunResult) -> None:
        """Append a coordinator run result."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO runs
            (status, agent_results, pr_decisions, errors, duration_ms, timestamp)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                result.status.value,
                json.dumps([_agent_result_to_dict(r) for r in result.agent_results]),
                json.dumps([_decision_to_dict(d) for d in result.pr_decisions]),
                json.dumps(result.errors),
                result.duration_ms,
                _to_utc_text(result.timestamp),
            ),
        )
        await conn.commit()

    async def get_runs(self, limit: int = 100) -> list[CoordinatorRunResult]:
        """Get run results (newest first)."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT status, agent_results, pr_decisions, errors, duration_ms, timestamp
            FROM runs
            ORDER BY seq DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()

        return [
            CoordinatorRunResult(
                status=RunStatus(row[0]),
                agent_results=[_agent_result_from_dict(r) for r in json.loads(row[1])],
                pr_decisions=[_decision_from_dict(d) for d in json.loads(row[2])],
                errors=json.loads(row[3]),
                duration_ms=row[4],
                timestamp=_from_utc_text(row[5]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        for table in ("messages", "pr_decisions", "runs"):
            await conn.execute(f"DELETE FROM {table}")
        await conn.commit()


def _to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_utc_text(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _decision_to_dict(decision: PRDecision) -> dict:
    return {
        "pr_number": decision.pr_number,
        "action": decision.action.value,
        "reason": decision.reason,
        "timestamp": _to_utc_text(decision.timestamp),
        "wait_conditions": decision.wait_conditions,
    }


def _decision_from_dict(data: dict) -> PRDecision:
    return PRDecision(
        pr_number=data["pr_number"],
        action=PRAction(data["action"]),
        reason=data["reason"],
        timestamp=_from_utc_text(data["timestamp"]),
        wait_conditions=data.get("wait_conditions"),
    )


def _agent_result_to_dict(result: AgentRunResult) -> dict:
    return {
        "agent_id": result.agent_id,
        "status": result.status.value,
        "files_changed": result.files_changed,
        "timestamp": _to_utc_text(result.timestamp),
        "duration_ms": result.duration_ms,
        "error": result.error,
        "output": result.output,
    }


def _agent_result_from_dict(data: dict) -> AgentRunResult:
    return AgentRunResult(
        agent_id=data["agent_id"],
        status=RunStatus(data["status"]),
        files_changed=data["files_changed"],
        timestamp=_from_utc_text(data["timestamp"]),
        duration_ms=data["duration_ms"],
        error=data.get("error"),
        output=data.get("output"),
    )
