"""User records, their JSON forms, and the SQL-backed store."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Mapping

from sqlalchemy import Column, Integer, String, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

log = logging.getLogger(__name__)

Base = declarative_base()


class User(Base):
    """A registered user."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(350), nullable=False)
    last_name = Column(String(250), nullable=False)
    user_name = Column(String(150), nullable=False, unique=True)
    password = Column(String(150), nullable=False)

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, user_name={self.user_name!r})"


def _str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"field {key!r} must be str")
    return value


@dataclass
class UserDto:
    name: str = ""
    last_name: str = ""
    user_name: str = ""
    password: str = ""
    id: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserDto":
        raw_id = data.get("id") or 0
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise TypeError("field 'id' must be int")
        return cls(
            _str(data, "name"), _str(data, "last_name"), _str(data, "user_name"),
            _str(data, "password"), raw_id,
        )


@dataclass
class LoginDto:
    user_name: str = ""
    password: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LoginDto":
        return cls(_str(data, "user_name"), _str(data, "password"))


@dataclass
class TokenDto:
    token: str = ""
    id_user: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def database_url(user: str, password: str, host: str, name: str) -> str:
    return f"mysql+pymysql://{user}:{password}@{host}:3306/{name}?charset=utf8"


class UserStore:
    """Reads and writes users through SQLAlchemy."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(self._engine)
        log.info("Finishing Migration Database Tables")

    def get_by_id(self, user_id: int) -> User | None:
        with self._sessions() as session:
            user = session.get(User, user_id)
        log.debug("User: %s", user)
        return user

    def get_all(self) -> list[User]:
        with self._sessions() as session:
            users = list(session.scalars(select(User)))
        log.debug("Users: %s", users)
        return users

    def insert(self, user: User) -> User:
        """Store ``user``; on failure it is logged and returned without an id."""
        with self._sessions() as session:
            try:
                session.add(user)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                log.error("error creating user: %s", exc)
                user.id = None
                return user
        log.debug("User Created: %s", user.id)
        return user

    def get_by_user_name(self, user_name: str) -> User | None:
        with self._sessions() as session:
            user = session.scalars(select(User).where(User.user_name == user_name)).first()
        log.debug("User: %s", user)
        return user

    def delete(self, user_id: int) -> None:
        """Delete the user if present; database errors propagate."""
        with self._sessions() as session:
            user = session.get(User, user_id)
            if user is not None:
                session.delete(user)
                session.commit()