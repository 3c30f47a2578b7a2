"""SQLite database operations for users, sessions and timetable events."""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional, Union

import aiosqlite

from ..ics.models import CalendarEvent
from ..utils.exceptions import DuplicateUserError, StorageError
from .models import DEFAULT_EVENT_COLOR, StoredEvent, User

logger = logging.getLogger(__name__)

# Fixed-width UTC format so string comparison in SQL matches time order
_DB_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        name TEXT,
        street TEXT,
        house_number TEXT,
        postal_code TEXT,
        city TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        token TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        location_code TEXT,
        resolved_address TEXT,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        color TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_events_owner_title_start
    ON events(owner_id, title, start_time)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_events_owner_start
    ON events(owner_id, start_time)
    """,
)


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime, treating naive values as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_db_timestamp(dt: datetime) -> str:
    """Convert a datetime to the stored UTC string form.

    Naive datetimes are treated as UTC.
    """
    return as_utc(dt).strftime(_DB_TIMESTAMP_FORMAT)


def from_db_timestamp(value: str) -> datetime:
    """Parse a stored timestamp back into an aware UTC datetime."""
    return datetime.fromisoformat(value)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class DatabaseManager:
    """Record store for users, sessions and events backed by SQLite."""

    def __init__(
        self, database_path: Union[Path, str], default_color: str = DEFAULT_EVENT_COLOR
    ):
        """Initialize database manager.

        Args:
            database_path: Path to SQLite database file
            default_color: Display color for inserted events that have none
        """
        self.default_color = default_color
        self.database_path = (
            Path(database_path) if isinstance(database_path, str) else database_path
        )
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialized = False
        self._initialization_lock: Optional[asyncio.Lock] = None

        logger.info("Database manager initialized (lazy): %s", self.database_path)

    async def _ensure_initialized(self) -> None:
        """Create the schema on first use.

        Raises:
            StorageError: If the schema cannot be created
        """
        if self._initialized:
            return

        # Use a lock to prevent concurrent initialization
        if self._initialization_lock is None:
            self._initialization_lock = asyncio.Lock()

        async with self._initialization_lock:
            if self._initialized:
                return
            try:
                async with aiosqlite.connect(str(self.database_path)) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.execute("PRAGMA foreign_keys=ON")
                    for statement in _SCHEMA:
                        await db.execute(statement)
                    await db.commit()
            except aiosqlite.Error as e:
                logger.exception("Failed to initialize database")
                raise StorageError(f"Failed to initialize database: {e}") from e

            self._initialized = True
            logger.info("Database schema initialized successfully")

    async def initialize(self) -> None:
        """Eagerly create the schema (normally deferred to the first query)."""
        await self._ensure_initialized()

    @asynccontextmanager
    async def _connection(
        self, operation: str, reraise_integrity: bool = False
    ) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection, translating SQLite failures into StorageError."""
        await self._ensure_initialized()
        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys=ON")
                yield db
        except aiosqlite.IntegrityError as e:
            if reraise_integrity:
                raise
            logger.exception("Constraint violation during %s", operation)
            raise StorageError(f"Database operation failed: {operation}") from e
        except aiosqlite.Error as e:
            logger.exception("Database operation failed: %s", operation)
            raise StorageError(f"Database operation failed: {operation}") from e

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_event(row: Any) -> StoredEvent:
        data = dict(row)
        data["start_time"] = from_db_timestamp(data["start_time"])
        data["end_time"] = from_db_timestamp(data["end_time"])
        data["created_at"] = from_db_timestamp(data["created_at"])
        return StoredEvent(**data)

    async def find_one_by_owner_title_and_approximate_start(
        self,
        owner_id: str,
        title: str,
        start: datetime,
        tolerance_seconds: float,
    ) -> Optional[StoredEvent]:
        """Find an event with the same owner and title starting near ``start``.

        Args:
            owner_id: Owning user
            title: Exact event title
            start: Reference start time
            tolerance_seconds: Allowed distance from ``start`` in either direction

        Returns:
            A matching stored event, or None
        """
        tolerance = timedelta(seconds=tolerance_seconds)
        async with self._connection("find duplicate event") as db:
            cursor = await db.execute(
                """
                SELECT * FROM events
                WHERE owner_id = ? AND title = ?
                AND start_time >= ? AND start_time <= ?
                ORDER BY start_time ASC
                LIMIT 1
                """,
                (
                    owner_id,
                    title,
                    to_db_timestamp(start - tolerance),
                    to_db_timestamp(start + tolerance),
                ),
            )
            row = await cursor.fetchone()
        return self._row_to_event(row) if row else None

    async def insert(self, event: CalendarEvent) -> StoredEvent:
        """Persist a candidate event.

        Args:
            event: Candidate event; a missing color gets the default color

        Returns:
            The stored event with its new id and creation time
        """
        stored = StoredEvent(
            id=uuid.uuid4().hex,
            owner_id=event.owner_id,
            title=event.title,
            description=event.description,
            location_code=event.location_code,
            resolved_address=event.resolved_address,
            start_time=as_utc(event.start_time),
            end_time=as_utc(event.end_time),
            color=event.color or self.default_color,
            created_at=_now_utc(),
        )
        async with self._connection("insert event") as db:
            await db.execute(
                """
                INSERT INTO events (
                    id, owner_id, title, description, location_code, resolved_address,
                    start_time, end_time, color, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    stored.id,
                    stored.owner_id,
                    stored.title,
                    stored.description,
                    stored.location_code,
                    stored.resolved_address,
                    to_db_timestamp(stored.start_time),
                    to_db_timestamp(stored.end_time),
                    stored.color,
                    to_db_timestamp(stored.created_at),
                ),
            )
            await db.commit()

        logger.debug("Stored event %s (%s) for owner %s", stored.id, stored.title, stored.owner_id)
        return stored

    async def delete_all_by_owner(self, owner_id: str) -> int:
        """Delete every event owned by a user.

        Returns:
            Number of events removed
        """
        async with self._connection("delete events") as db:
            cursor = await db.execute("DELETE FROM events WHERE owner_id = ?", (owner_id,))
            deleted_count = cursor.rowcount
            await db.commit()

        logger.debug("Cleared %d events for owner %s", deleted_count, owner_id)
        return deleted_count

    async def find_all_by_owner(
        self,
        owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[StoredEvent]:
        """Get a user's events ordered by start time.

        Args:
            owner_id: Owning user
            start: Inclusive lower bound on start time
            end: Exclusive upper bound on start time

        Returns:
            List of stored events
        """
        query = "SELECT * FROM events WHERE owner_id = ?"
        params: list[Any] = [owner_id]
        if start is not None:
            query += " AND start_time >= ?"
            params.append(to_db_timestamp(start))
        if end is not None:
            query += " AND start_time < ?"
            params.append(to_db_timestamp(end))
        query += " ORDER BY start_time ASC"

        async with self._connection("list events") as db:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()

        events = [self._row_to_event(row) for row in rows]
        logger.debug("Retrieved %d events for owner %s", len(events), owner_id)
        return events

    async def get_event(self, owner_id: str, event_id: str) -> Optional[StoredEvent]:
        """Get one of a user's events by id."""
        async with self._connection("get event") as db:
            cursor = await db.execute(
                "SELECT * FROM events WHERE id = ? AND owner_id = ?", (event_id, owner_id)
            )
            row = await cursor.fetchone()
        return self._row_to_event(row) if row else None

    async def count_events_by_owner(self, owner_id: str) -> int:
        """Count a user's stored events."""
        async with self._connection("count events") as db:
            cursor = await db.execute(
                "SELECT COUNT(*) AS count FROM events WHERE owner_id = ?", (owner_id,)
            )
            row = await cursor.fetchone()
        return row["count"] if row else 0

    # ------------------------------------------------------------------
    # Users and sessions
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_user(row: Any) -> User:
        data = dict(row)
        data.pop("password_hash", None)
        data["created_at"] = from_db_timestamp(data["created_at"])
        return User(**data)

    async def create_user(self, email: str, password_hash: str, name: Optional[str] = None) -> User:
        """Register a new user.

        Raises:
            DuplicateUserError: If the email is already registered
        """
        user = User(id=uuid.uuid4().hex, email=email, name=name or None, created_at=_now_utc())
        try:
            async with self._connection("create user", reraise_integrity=True) as db:
                await db.execute(
                    """
                    INSERT INTO users (id, email, password_hash, name, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (user.id, user.email, password_hash, user.name, to_db_timestamp(user.created_at)),
                )
                await db.commit()
        except aiosqlite.IntegrityError as e:
            raise DuplicateUserError(f"User already exists: {email}") from e

        logger.info("Registered user %s", user.id)
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by id."""
        async with self._connection("get user") as db:
            cursor = await db.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()
        return self._row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        credentials = await self.get_credentials(email)
        return credentials[0] if credentials else None

    async def get_credentials(self, email: str) -> Optional[tuple[User, str]]:
        """Get a user and their stored password hash by email."""
        async with self._connection("get credentials") as db:
            cursor = await db.execute("SELECT * FROM users WHERE email = ?", (email,))
            row = await cursor.fetchone()
        if not row:
            return None
        return self._row_to_user(row), row["password_hash"]

    async def update_address(
        self,
        user_id: str,
        street: Optional[str],
        house_number: Optional[str],
        postal_code: Optional[str],
        city: Optional[str],
    ) -> Optional[User]:
        """Replace a user's address fields.

        Returns:
            The updated user, or None if the user does not exist
        """
        async with self._connection("update address") as db:
            cursor = await db.execute(
                """
                UPDATE users SET street = ?, house_number = ?, postal_code = ?, city = ?
                WHERE id = ?
                """,
                (street, house_number, postal_code, city, user_id),
            )
            await db.commit()
            updated = cursor.rowcount

        if not updated:
            return None
        return await self.get_user(user_id)

    async def create_session(self, user_id: str, token: str) -> None:
        """Store a session token for a user."""
        async with self._connection("create session") as db:
            await db.execute(
                "INSERT INTO sessions (token, user_id, created_at) VALUES (?, ?, ?)",
                (token, user_id, to_db_timestamp(_now_utc())),
            )
            await db.commit()

    async def get_user_id_for_session(self, token: str) -> Optional[str]:
        """Resolve a session token to its user id."""
        async with self._connection("get session") as db:
            cursor = await db.execute("SELECT user_id FROM sessions WHERE token = ?", (token,))
            row = await cursor.fetchone()
        return row["user_id"] if row else None

    async def delete_session(self, token: str) -> bool:
        """Remove a session token.

        Returns:
            True if a session was removed
        """
        async with self._connection("delete session") as db:
            cursor = await db.execute("DELETE FROM sessions WHERE token = ?", (token,))
            await db.commit()
            return cursor.rowcount > 0
