
"""Adapter da origem remota do cardápio (documento JSON via HTTP GET)."""
from __future__ import annotations
from urllib.parse import urljoin
import httpx
from pydantic import ValidationError
from kink import di
from ...core.errors import RemoteMalformed, RemoteUnavailable
from ...core.logging import get_logger
from ...core.settings import Settings
from ...ports.interfaces import MenuRecord, RemoteMenuItemDTO

log = get_logger()

def parse_menu_document(doc) -> list[MenuRecord]:
    """Converte o documento remoto em MenuRecord, com ids 1..n na ordem do documento.

    Aceita {"menu": [...]} ou um array JSON puro.
    """
    items = doc.get("menu") if isinstance(doc, dict) else doc
    if not isinstance(items, list):
        raise RemoteMalformed("expected a JSON array under 'menu'")
    records: list[MenuRecord] = []
    for idx, raw in enumerate(items, start=1):
        try:
            dto = RemoteMenuItemDTO.model_validate(raw)
        except ValidationError as exc:
            raise RemoteMalformed(f"menu item #{idx} is malformed: {exc.errors()[0]['msg']}") from exc
        records.append(MenuRecord(id=idx, **dto.model_dump()))
    return records

class RemoteMenuSource:
    """Busca o cardápio remoto. Sem estado e sem retry (política do orquestrador)."""
    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None):
        self.s = settings or di[Settings]
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.s.fetch_timeout_ms / 1000, transport=self.transport, follow_redirects=True)

    def fetch(self, url: str | None = None) -> list[MenuRecord]:
        """Uma única requisição GET; falhas viram RemoteUnavailable/RemoteMalformed."""
        url = url or self.s.menu_url
        try:
            with self._client() as cli:
                r = cli.get(url)
                r.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning("remote_fetch_failed", url=url, error=str(exc))
            raise RemoteUnavailable(f"{url}: {exc}") from exc
        try:
            doc = r.json()
        except ValueError as exc:
            log.warning("remote_fetch_malformed", url=url, error=str(exc))
            raise RemoteMalformed(f"{url}: response is not JSON") from exc
        records = parse_menu_document(doc)
        log.info("remote_fetch_done", url=url, count=len(records))
        return records

    def image_url(self, image: str) -> str:
        """Resolve a referência de imagem contra image_base_url (URLs absolutas passam direto)."""
        if not image or image.startswith(("http://", "https://")):
            return image
        return urljoin(self.s.image_base_url, image) + "?raw=true"
