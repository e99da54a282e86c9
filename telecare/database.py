import logging
import time
from threading import Lock
from typing import Callable, TypeVar

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from telecare.core import config
from telecare.core.errors import SchedulingError, ServiceUnavailable


logger = logging.getLogger(__name__)

T = TypeVar("T")

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False


def ensure_appointment_schema(bind=None) -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        bind = bind or engine
        inspector = inspect(bind)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('meeting_link', 'ALTER TABLE appointments ADD COLUMN meeting_link VARCHAR'),
            ('purpose_of_consultation', 'ALTER TABLE appointments ADD COLUMN purpose_of_consultation VARCHAR'),
            ('initial_symptoms', 'ALTER TABLE appointments ADD COLUMN initial_symptoms VARCHAR'),
        ]

        with bind.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_appointments_doctor_status_range '
                    'ON appointments(doctor_id, status, start_time, end_time)'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_patient ON appointments(patient_id)')
            )

        _appointment_schema_checked = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_with_retries(
    operation: Callable[[], T],
    session: Session | None = None,
    attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    """Run a unit of work, retrying transient database failures.

    ``OperationalError`` (lock contention, dropped connections, timeouts) is
    retried with exponential backoff; after the last attempt, and for any
    other ``SQLAlchemyError``, the failure surfaces as ``ServiceUnavailable``.
    Business errors propagate untouched. The session is rolled back after
    every failed attempt.
    """
    attempts = attempts or config.DB_RETRY_ATTEMPTS
    backoff_seconds = config.DB_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except SchedulingError:
            if session is not None:
                session.rollback()
            raise
        except OperationalError as exc:
            if session is not None:
                session.rollback()
            if attempt == attempts:
                logger.error('Database still failing after %s attempts: %s', attempts, exc)
                raise ServiceUnavailable(DATABASE_UNAVAILABLE_DETAIL) from exc
            delay = backoff_seconds * (2 ** (attempt - 1))
            logger.warning('Transient database failure (attempt %s/%s), retrying in %.2fs', attempt, attempts, delay)
            time.sleep(delay)
        except SQLAlchemyError as exc:
            if session is not None:
                session.rollback()
            logger.exception('Database operation failed')
            raise ServiceUnavailable(DATABASE_UNAVAILABLE_DETAIL) from exc

    raise ServiceUnavailable(DATABASE_UNAVAILABLE_DETAIL)
