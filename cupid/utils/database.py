"""Database connection utilities and table definitions for the Cupid match engine."""

import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Optional, TypeVar

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    create_engine,
    event,
    text,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from cupid.config import get_settings
from cupid.models.interaction import InteractionState
from cupid.utils.errors import ConflictError, DatabaseError, TransientError
from cupid.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def utcnow() -> datetime:
    """Get current UTC time (naive) to replace datetime.utcnow()."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class UserDB(Base):
    """User directory row. Profile data lives elsewhere; only identity is kept here."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class InteractionDB(Base):
    """One directed like/dislike signal. The composite key allows one row per ordered pair."""

    __tablename__ = "interactions"

    actor_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), primary_key=True)
    target_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), primary_key=True)
    state: Mapped[InteractionState] = mapped_column(
        SAEnum(
            InteractionState,
            native_enum=False,
            length=20,
            values_callable=lambda states: [state.value for state in states],
        )
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
    matched_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    unmatched_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (Index("idx_interactions_target_state", "target_id", "state"),)


class BlockDB(Base):
    """Membership of `blocked_id` in the block set of `blocker_id`."""

    __tablename__ = "blocks"

    blocker_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), primary_key=True)
    blocked_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), primary_key=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class ReportDB(Base):
    """Append-only report log."""

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    reporter_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), index=True)
    target_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), index=True)
    reason: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


class MessageDB(Base):
    """Direct message between two users."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"))
    receiver_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"))
    content: Mapped[str] = mapped_column(Text)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_messages_pair", "sender_id", "receiver_id"),
        Index("idx_messages_unread", "receiver_id", "is_read"),
    )


def normalize_database_url(database_url: str) -> str:
    """Rewrite the legacy `postgres://` scheme that SQLAlchemy no longer accepts."""
    if database_url and database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def redact_database_url(database_url: str) -> str:
    """Hide the password part of a database URL for logging."""
    safe_url = database_url
    if "@" in safe_url:
        try:
            part1, part2 = safe_url.rsplit("@", 1)
            if ":" in part1:
                scheme_user, _ = part1.rsplit(":", 1)
                safe_url = f"{scheme_user}:***@{part2}"
        except ValueError:
            safe_url = "REDACTED_MALFORMED_URL"
    return safe_url


def _use_immediate_transactions(engine: Engine) -> None:
    """
    Make every SQLite transaction start with BEGIN IMMEDIATE.

    The driver's own transaction handling is switched off so reads inside a
    unit of work already hold the database write lock.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """
    Storage handle injected into every service.

    Owns the engine and session factory and provides the atomic unit of work
    (`atomic`) together with its bounded-retry wrapper (`run_atomic`).
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        *,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        statement_timeout_ms: Optional[int] = None,
        pool_timeout: Optional[int] = None,
        echo: Optional[bool] = None,
    ) -> None:
        settings = get_settings()
        self.url = normalize_database_url(database_url if database_url is not None else settings.DATABASE_URL)
        self.max_retries = max(1, max_retries if max_retries is not None else settings.DB_MAX_RETRIES)
        self.retry_backoff = retry_backoff if retry_backoff is not None else settings.DB_RETRY_BACKOFF_SECONDS
        self.statement_timeout_ms = (
            statement_timeout_ms if statement_timeout_ms is not None else settings.DB_STATEMENT_TIMEOUT_MS
        )
        self.pool_timeout = pool_timeout if pool_timeout is not None else settings.DB_POOL_TIMEOUT
        self.echo = echo if echo is not None else settings.DEBUG

        self.engine = self._create_engine()
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def _create_engine(self) -> Engine:
        if not self.url:
            raise DatabaseError("DATABASE_URL is not configured")

        try:
            backend = make_url(self.url).get_backend_name()
            if backend == "sqlite":
                engine = create_engine(
                    self.url,
                    connect_args={"timeout": self.statement_timeout_ms / 1000, "check_same_thread": False},
                    echo=self.echo,
                )
                _use_immediate_transactions(engine)
            else:
                connect_args: dict[str, Any] = {}
                if backend == "postgresql":
                    connect_args["options"] = f"-c statement_timeout={self.statement_timeout_ms}"
                engine = create_engine(
                    self.url,
                    pool_recycle=300,
                    pool_pre_ping=True,
                    pool_timeout=self.pool_timeout,
                    connect_args=connect_args,
                    echo=self.echo,
                )
        except Exception as e:
            safe_url = redact_database_url(self.url)
            logger.error("Failed to create database engine", error=str(e), url=safe_url)
            raise DatabaseError("Failed to connect to database", details={"error": str(e), "url": safe_url}) from e

        logger.info("Database engine created", backend=backend)
        return engine

    @property
    def dialect(self) -> str:
        """Name of the SQL dialect in use (sqlite, postgresql, ...)."""
        return self.engine.dialect.name

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables created")

    def drop_tables(self) -> None:
        """Drop all database tables."""
        Base.metadata.drop_all(self.engine)
        logger.info("Database tables dropped")

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed", error=str(e))
            return False

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    @contextmanager
    def atomic(self) -> Iterator[Session]:
        """
        Open one atomic unit of work.

        Commits when the block exits normally and rolls back on any exception,
        including cancellation. The session is always closed.
        """
        session = self.session_factory()
        try:
            with session.begin():
                yield session
        finally:
            session.close()

    def run_atomic(self, operation: Callable[[Session], T], *, name: str = "atomic") -> T:
        """
        Run `operation` inside an atomic unit, retrying on contention.

        Domain errors raised by `operation` propagate on the first attempt.
        Serialization failures, lock timeouts and pool timeouts are retried up
        to `max_retries` attempts, then surfaced as `TransientError`.

        Args:
            operation: Callable receiving the transaction's session.
            name: Operation name used in logs and error details.

        Returns:
            Whatever `operation` returns.

        Raises:
            ConflictError: If the store rejected a write on a uniqueness constraint.
            TransientError: If contention outlasted the retry budget.
            DatabaseError: For any other storage failure.
        """
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                with self.atomic() as session:
                    return operation(session)
            except IntegrityError as e:
                logger.warning("Write rejected by constraint", operation=name, error=str(e.orig))
                raise ConflictError("Conflicting write rejected", details={"operation": name}) from e
            except (OperationalError, PoolTimeoutError) as e:
                last_error = e
                logger.warning(
                    "Atomic unit failed, retrying",
                    operation=name,
                    attempt=attempt,
                    max_attempts=self.max_retries,
                    error=str(e),
                )
                if attempt < self.max_retries:
                    time.sleep(self.retry_backoff * attempt)
            except SQLAlchemyError as e:
                logger.error("Database operation failed", operation=name, error=str(e))
                raise DatabaseError(f"Database operation failed: {name}", details={"error": str(e)}) from e

        logger.error("Atomic unit exhausted retries", operation=name, attempts=self.max_retries)
        raise TransientError(
            f"Storage is busy, please retry: {name}",
            details={"operation": name, "attempts": self.max_retries, "error": str(last_error)},
        ) from last_error
