from sqlalchemy import text
from sqlmodel import SQLModel, create_engine

from uniflash.config.settings import get_settings

_engine = None


def get_engine():
    global _engine
    if _engine is None:
        _engine = create_engine(
            get_settings().database_url, echo=False, connect_args={"check_same_thread": False}
        )
    return _engine


def init_db() -> None:
    """Create tables and back-fill columns added after the first release."""
    import uniflash.db.schemas  # noqa: F401

    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    _ensure_flashcard_columns(engine)


def _ensure_flashcard_columns(engine) -> None:
    with engine.begin() as conn:
        result = conn.execute(text("PRAGMA table_info('flashcards')"))
        columns = {row[1] for row in result}
        if not columns:
            return
        if "is_flagged" not in columns:
            conn.execute(text("ALTER TABLE flashcards ADD COLUMN is_flagged BOOLEAN DEFAULT 0"))
        if "notes" not in columns:
            conn.execute(text("ALTER TABLE flashcards ADD COLUMN notes TEXT"))
