
"""Armazenamento chave-valor do perfil do usuário (independente do cache de cardápio)."""
from __future__ import annotations
from sqlalchemy.exc import SQLAlchemyError
from pydantic import BaseModel
from kink import di
from .models import Base, KeyValueEntry
from ..core.errors import StorageUnavailable, StorageWriteError
from ..core.logging import get_logger

log = get_logger()

PROFILE_KEY = "profile"

class Profile(BaseModel):
    """Perfil salvo pelo onboarding/editor de perfil."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone_number: str = ""
    order_statuses: bool = False
    password_changes: bool = False
    special_offers: bool = False
    newsletter: bool = False
    image: str = ""

class ProfileStore:
    """Persistência do perfil em `kv_entries`."""
    def __init__(self, session_factory=None):
        self.Session = session_factory or di["session_factory"]

    def initialize(self) -> None:
        try:
            Base.metadata.create_all(self.Session.kw["bind"], tables=[KeyValueEntry.__table__], checkfirst=True)
        except SQLAlchemyError as exc:
            raise StorageUnavailable(str(exc)) from exc

    def get_profile(self) -> Profile | None:
        """Retorna o perfil salvo ou None."""
        try:
            with self.Session() as s:
                row = s.get(KeyValueEntry, PROFILE_KEY)
                return Profile.model_validate(row.value) if row else None
        except SQLAlchemyError as exc:
            raise StorageUnavailable(str(exc)) from exc

    def save_profile(self, profile: Profile) -> None:
        """Grava (ou sobrescreve) o perfil."""
        try:
            with self.Session() as s, s.begin():
                s.merge(KeyValueEntry(key=PROFILE_KEY, value=profile.model_dump(mode="json")))
        except SQLAlchemyError as exc:
            raise StorageWriteError(str(exc)) from exc
        log.info("profile_saved")

    def clear_profile(self) -> None:
        """Remove o perfil (logout): o onboarding volta a ser exigido."""
        try:
            with self.Session() as s, s.begin():
                row = s.get(KeyValueEntry, PROFILE_KEY)
                if row:
                    s.delete(row)
        except SQLAlchemyError as exc:
            raise StorageWriteError(str(exc)) from exc
        log.info("profile_cleared")

    def is_onboarding_completed(self) -> bool:
        return self.get_profile() is not None
