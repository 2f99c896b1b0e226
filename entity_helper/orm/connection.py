import logging
import os
from dataclasses import dataclass

from sqlalchemy import URL, Engine, create_engine, make_url
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from entity_helper.exceptions import EnvNotFoundError

logger = logging.getLogger("Entity-Helper")

DEFAULT_ENV_PREFIX = "ENTITY_HELPER_DB_"


@dataclass
class DBConnection:
    """Database connection configuration."""

    drivername: str = "postgresql+psycopg"
    host: str | None = None
    port: int | None = None
    username: str | None = None
    password: str | None = None
    database: str | None = None
    echo: bool = False

    @property
    def db_url(self) -> URL:
        """Construct the SQLAlchemy database URL."""
        return URL.create(
            drivername=self.drivername,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    @classmethod
    def from_url(cls, url: str | URL, echo: bool = False) -> "DBConnection":
        """Build a configuration from a full SQLAlchemy URL.

        Example:
            >>> DBConnection.from_url("sqlite:///shop.db").database
            'shop.db'
        """
        parsed = make_url(url)
        return cls(
            drivername=parsed.drivername,
            host=parsed.host,
            port=parsed.port,
            username=parsed.username,
            password=parsed.password,
            database=parsed.database,
            echo=echo,
        )

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> "DBConnection":
        """Build a configuration from environment variables.

        ``<prefix>URL`` wins when set. Otherwise ``<prefix>HOST``, ``<prefix>USER``
        and ``<prefix>NAME`` are required and ``<prefix>PASSWORD``, ``<prefix>PORT``,
        ``<prefix>DRIVER`` are optional.

        Raises:
            EnvNotFoundError: If a required variable is missing.
        """
        echo = os.getenv(f"{prefix}ECHO", "").lower() in ("1", "true", "yes")
        url = os.getenv(f"{prefix}URL")
        if url:
            return cls.from_url(url, echo=echo)

        values = {}
        for name in ("HOST", "USER", "NAME"):
            value = os.getenv(f"{prefix}{name}")
            if not value:
                raise EnvNotFoundError(f"{prefix}{name}")
            values[name] = value

        port = os.getenv(f"{prefix}PORT")
        return cls(
            drivername=os.getenv(f"{prefix}DRIVER", "postgresql+psycopg"),
            host=values["HOST"],
            port=int(port) if port else None,
            username=values["USER"],
            password=os.getenv(f"{prefix}PASSWORD"),
            database=values["NAME"],
            echo=echo,
        )

    def get_engine(self) -> Engine:
        """Create a SQLAlchemy engine using the connection configuration."""
        logger.debug(f"Creating engine for {self.db_url.render_as_string(hide_password=True)}")
        return create_engine(self.db_url, echo=self.echo)

    def get_session_factory(self) -> sessionmaker[Session]:
        """Create a SQLAlchemy session factory using the connection configuration."""
        return sessionmaker(bind=self.get_engine())

    def get_scoped_session_factory(self) -> scoped_session[Session]:
        """Create a thread-safe scoped SQLAlchemy session factory."""
        return scoped_session(self.get_session_factory())
