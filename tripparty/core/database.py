# tripparty/core/database.py
import logging
import threading
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger("tripparty.database")
logger.setLevel(logging.INFO)

Base = declarative_base()


class Database:
    """
    Handle to the SQL store.

    The engine and session factory are created once, on first use, and reused
    for the lifetime of the process. Nothing is connected at construction time,
    so building the app never touches the database.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    def _initialize(self) -> None:
        with self._lock:
            if self._engine is not None:
                return
            connect_args = {}
            if self.url.startswith("sqlite"):
                # Sessions are handed across FastAPI's threadpool
                connect_args["check_same_thread"] = False
            engine = create_engine(
                self.url,
                echo=self.echo,
                pool_pre_ping=True,
                connect_args=connect_args,
            )
            self._session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
            self._engine = engine
            logger.info(f"Database engine initialized ({engine.url.get_backend_name()})")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._initialize()
        return self._engine

    def session(self) -> Session:
        if self._session_factory is None:
            self._initialize()
        return self._session_factory()

    def create_all(self) -> None:
        # Import models so their tables attach to Base.metadata
        import tripparty.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
