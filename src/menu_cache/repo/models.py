
"""Modelos SQLAlchemy: itens de cardápio e armazenamento chave-valor do perfil."""
from __future__ import annotations
from decimal import Decimal
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Integer, Numeric, Text, JSON, CheckConstraint

class Base(DeclarativeBase):
    """Base declarativa."""
    pass

class MenuItem(Base):
    __tablename__ = "menuitems"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(200))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2, asdecimal=True))
    description: Mapped[str] = mapped_column(Text, default="")
    image: Mapped[str] = mapped_column(String(500), default="")
    category: Mapped[str] = mapped_column(String(64), index=True)
    __table_args__ = (
        CheckConstraint("length(category) > 0", name="ck_menuitems_category_not_empty"),
    )

class KeyValueEntry(Base):
    __tablename__ = "kv_entries"
    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON)
