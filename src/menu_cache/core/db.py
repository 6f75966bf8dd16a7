
"""Factory de sessão do SQLAlchemy 2."""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

def _casefold(value):
    return value.casefold() if isinstance(value, str) else value

def _register_sqlite_functions(dbapi_conn, _record) -> None:
    # lower()/LIKE nativos do SQLite só dobram ASCII
    dbapi_conn.create_function("casefold", 1, _casefold, deterministic=True)

def _enable_sqlite_wal(dbapi_conn, _record) -> None:
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA journal_mode=WAL")
    cur.close()

def create_session_factory(database_url: str):
    """Cria SessionFactory síncrona para SQLAlchemy 2.

    Para SQLite, libera o uso entre threads (o orquestrador roda o I/O em worker
    threads), registra a função `casefold` (Unicode) usada nas buscas e liga WAL
    quando o banco é arquivo, permitindo leituras durante escrita.

    :param database_url: URL completa do banco (ex: sqlite:///little_lemon.db).
    :return: sessionmaker configurado.
    """
    url = make_url(database_url)
    kwargs = {"pool_pre_ping": True, "future": True}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
    engine = create_engine(database_url, **kwargs)
    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _register_sqlite_functions)
        if url.database not in (None, "", ":memory:"):
            event.listen(engine, "connect", _enable_sqlite_wal)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
