# -*- coding: utf-8 -*-
"""Helpers compartilhados pelos testes (dados de exemplo, fakes e transporte HTTP)."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Callable

import httpx

from menu_cache.core.db import create_session_factory
from menu_cache.core.settings import Settings
from menu_cache.ports.interfaces import MenuRecord

MENU_URL = "https://menu.test/capstone.json"

MENU_DOCUMENT = {
    "menu": [
        {"name": "Greek Salad", "price": 12.99, "description": "Crispy lettuce, olives and feta.", "image": "greekSalad.jpg", "category": "starters"},
        {"name": "Bruschetta", "price": 7.99, "description": "Grilled bread with garlic.", "image": "bruschetta.jpg", "category": "starters"},
        {"name": "Grilled Fish", "price": 20.00, "description": "Catch of the day.", "image": "grilledFish.jpg", "category": "mains"},
        {"name": "Pasta", "price": 18.99, "description": "Penne with tomato sauce.", "image": "pasta.jpg", "category": "mains"},
        {"name": "Lemon Dessert", "price": 6.99, "description": "Grandma's lemon cake.", "image": "lemonDessert.jpg", "category": "desserts"},
    ]
}


def record(id: int, name: str, category: str, price: str = "9.99") -> MenuRecord:
    return MenuRecord(id=id, name=name, price=Decimal(price), description=f"{name} description", image=f"{id}.jpg", category=category)


def menu_records() -> list[MenuRecord]:
    return [
        MenuRecord(id=i, **item) for i, item in enumerate(MENU_DOCUMENT["menu"], start=1)
    ]


def sqlite_factory(tmpdir: str, name: str = "menu.db"):
    return create_session_factory(f"sqlite:///{Path(tmpdir) / name}")


def make_settings(tmpdir: str, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite:///{Path(tmpdir) / 'app.db'}",
        "menu_url": MENU_URL,
        "debounce_ms": 0,
        "fetch_timeout_ms": 2000,
    }
    values.update(overrides)
    return Settings(**values)


def json_transport(payload, status_code: int = 200, calls: list | None = None) -> httpx.MockTransport:
    """Transporte que responde sempre com `payload` (JSON) e registra as URLs pedidas."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"), headers={"content-type": "application/json"})

    return httpx.MockTransport(handler)


def handler_transport(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


class FakeSource:
    """Origem remota em memória: conta chamadas e pode falhar sob demanda."""

    def __init__(self, records: list[MenuRecord] | None = None, error: Exception | None = None) -> None:
        self.records = records if records is not None else menu_records()
        self.error = error
        self.calls = 0

    def fetch(self, url: str | None = None) -> list[MenuRecord]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)
