
"""Bootstrap do container de DI (kink) para o cache de cardápio."""
from kink import di
from .settings import Settings
from .logging import configure_logging
from .db import create_session_factory
from ..repo.menu_store import MenuStore
from ..repo.profile_store import ProfileStore
from ..connectors.remote.menu_source import RemoteMenuSource

def bootstrap_di(settings: Settings | None = None) -> None:
    settings = settings or Settings()
    di[Settings] = settings
    configure_logging(settings.log_level)
    di["session_factory"] = create_session_factory(settings.database_url)
    di[MenuStore] = MenuStore(di["session_factory"])
    di[ProfileStore] = ProfileStore(di["session_factory"])
    di[RemoteMenuSource] = RemoteMenuSource(settings)
