
"""Repositório do cardápio: schema, replace atômico e consulta parametrizada.

- Escritas (replace_all) são serializadas; leituras podem rodar em paralelo entre si,
  mas nunca enxergam um replace_all pela metade (trava leitores/escritor + transação).
- Nenhum texto do usuário é interpolado em SQL: LIKE com autoescape e IN com binds.
"""
from __future__ import annotations
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator
from sqlalchemy import String, select, delete, func, insert
from sqlalchemy.exc import SQLAlchemyError
from kink import di
from .models import Base, MenuItem
from ..core.errors import StorageUnavailable, StorageWriteError
from ..core.logging import get_logger
from ..ports.interfaces import MenuQuery, MenuRecord

log = get_logger()

class _ReadWriteLock:
    """Trava leitores/escritor com preferência para o escritor."""
    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False
        self._writers_waiting = 0

    @contextmanager
    def reading(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def writing(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writing or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()

def _to_record(row: MenuItem) -> MenuRecord:
    return MenuRecord(
        id=row.id, name=row.name, price=row.price,
        description=row.description or "", image=row.image or "", category=row.category,
    )

def build_clause(predicate: MenuQuery, dialect: str = "sqlite"):
    """Compila o predicado em cláusulas SQLAlchemy com parâmetros vinculados.

    No SQLite usa a função `casefold` registrada em core.db (dobra Unicode);
    nos demais bancos, `lower()` nativo.
    """
    clauses = []
    if predicate.text:
        if dialect == "sqlite":
            folded, needle = func.casefold(MenuItem.name, type_=String), predicate.text.casefold()
        else:
            folded, needle = func.lower(MenuItem.name, type_=String), predicate.text.lower()
        clauses.append(folded.contains(needle, autoescape=True))
    if predicate.categories:
        clauses.append(MenuItem.category.in_(sorted(predicate.categories)))
    return clauses

class MenuStore:
    """Store persistente de MenuRecord (SQLAlchemy)."""
    def __init__(self, session_factory=None):
        self.Session = session_factory or di["session_factory"]
        self._lock = _ReadWriteLock()

    def initialize(self) -> None:
        """Garante (idempotente) que o schema existe."""
        engine = self.Session.kw["bind"]
        try:
            with self._lock.writing():
                Base.metadata.create_all(engine, tables=[MenuItem.__table__], checkfirst=True)
        except SQLAlchemyError as exc:
            log.error("menu_store_init_failed", error=str(exc))
            raise StorageUnavailable(str(exc)) from exc
        log.info("menu_store_ready", url=engine.url.render_as_string(hide_password=True))

    def is_empty(self) -> bool:
        return self.count() == 0

    def count(self) -> int:
        """Quantidade de itens armazenados."""
        with self._read_session() as s:
            return s.execute(select(func.count()).select_from(MenuItem)).scalar_one()

    def categories(self) -> list[str]:
        """Categorias distintas presentes no store, em ordem alfabética."""
        with self._read_session() as s:
            return list(s.execute(select(MenuItem.category).distinct().order_by(MenuItem.category)).scalars())

    def replace_all(self, records: Iterable[MenuRecord]) -> None:
        """Apaga tudo e insere `records` em uma única transação (tudo ou nada)."""
        records = list(records)
        for r in records:
            if not r.category:
                raise StorageWriteError(f"record {r.id} has an empty category")
        rows = [r.model_dump() for r in records]
        try:
            with self._lock.writing(), self.Session() as s, s.begin():
                s.execute(delete(MenuItem))
                if rows:
                    s.execute(insert(MenuItem), rows)
        except SQLAlchemyError as exc:
            log.error("menu_store_replace_failed", error=str(exc), count=len(rows))
            raise StorageWriteError(str(exc)) from exc
        log.info("menu_store_replaced", count=len(rows))

    def query(self, predicate: MenuQuery | None = None) -> list[MenuRecord]:
        """Retorna os itens que satisfazem o predicado (ordem não especificada)."""
        stmt = select(MenuItem)
        clauses = build_clause(predicate, self.Session.kw["bind"].dialect.name) if predicate is not None else []
        if clauses:
            stmt = stmt.where(*clauses)
        with self._read_session() as s:
            return [_to_record(r) for r in s.execute(stmt).scalars()]

    @contextmanager
    def _read_session(self):
        try:
            with self._lock.reading(), self.Session() as s:
                yield s
        except SQLAlchemyError as exc:
            log.error("menu_store_read_failed", error=str(exc))
            raise StorageUnavailable(str(exc)) from exc
