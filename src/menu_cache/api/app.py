"""API Flask: bootstrap do cache, busca por seções, resync e perfil."""
from __future__ import annotations
from flask import Flask, request, jsonify
from pydantic import ValidationError
from kink import di
from ..core.di import bootstrap_di
from ..core.errors import (
    MenuCacheError, OrchestratorStateError, RemoteMalformed, RemoteUnavailable,
    StorageUnavailable, StorageWriteError,
)
from ..core.guardrails import sanitize_query
from ..core.logging import set_trace_id, get_logger
from ..core.settings import Settings
from ..domain.services import menu_service
from ..ports.interfaces import FilterState, Section
from ..repo.menu_store import MenuStore
from ..repo.profile_store import Profile, ProfileStore
from ..connectors.remote.menu_source import RemoteMenuSource

log = get_logger()

def _section_json(section: Section, source: RemoteMenuSource) -> dict:
    return {
        "name": section.name,
        "items": [
            item.model_dump(mode="json") | {"image_url": source.image_url(item.image)}
            for item in section.items
        ],
    }

def _error_status(exc: MenuCacheError) -> int:
    if isinstance(exc, OrchestratorStateError):
        return 409
    if isinstance(exc, (StorageUnavailable, StorageWriteError, RemoteUnavailable, RemoteMalformed)):
        return 503
    return 500

def create_app(settings: Settings | None = None) -> Flask:
    """Cria a app Flask, registrando as dependências no container."""
    bootstrap_di(settings)
    di[ProfileStore].initialize()
    app = Flask(__name__)

    @app.before_request
    def _trace():
        set_trace_id(request.headers.get("X-Trace-Id"))

    @app.errorhandler(MenuCacheError)
    def _menu_cache_error(exc: MenuCacheError):
        status = _error_status(exc)
        log.warning("request_failed", path=request.path, error=str(exc), kind=type(exc).__name__, status=status)
        return {"error": type(exc).__name__, "detail": str(exc)}, status

    @app.get("/healthz")
    def healthz():
        """Health check básico."""
        return {"ok": True}

    @app.post("/bootstrap")
    def bootstrap():
        """Garante o store populado (fetch remoto só se vazio)."""
        fetched = menu_service.ensure_populated()
        return {"ok": True, "fetched": fetched, "items_count": di[MenuStore].count()}

    @app.get("/menu")
    def menu():
        """Busca por texto (?q=) e categorias (?category= repetível) agrupada em seções."""
        fs = FilterState(
            text_query=sanitize_query(request.args.get("q")),
            active_categories=frozenset(c for c in request.args.getlist("category") if c),
        )
        sections = menu_service.search(fs)
        source = di[RemoteMenuSource]
        return jsonify({"sections": [_section_json(s, source) for s in sections]})

    @app.get("/categories")
    def categories():
        return {"categories": di[MenuStore].categories()}

    @app.post("/admin/resync")
    def admin_resync():
        """Substitui o cardápio local pelo documento remoto atual."""
        count = menu_service.resync()
        return {"ok": True, "items_count": count}

    @app.get("/profile")
    def get_profile():
        profile = di[ProfileStore].get_profile()
        if profile is None:
            return {"onboarding_completed": False, "profile": None}
        return {"onboarding_completed": True, "profile": profile.model_dump()}

    @app.put("/profile")
    def put_profile():
        body = request.get_json(force=True) or {}
        try:
            profile = Profile.model_validate(body)
        except ValidationError as exc:
            return {"error": "invalid profile", "detail": exc.errors(include_url=False)}, 400
        di[ProfileStore].save_profile(profile)
        return {"ok": True, "profile": profile.model_dump()}

    @app.delete("/profile")
    def delete_profile():
        """Logout: apaga o perfil e volta a exigir onboarding."""
        di[ProfileStore].clear_profile()
        return {"ok": True, "onboarding_completed": False}

    return app

def main() -> None:
    settings = Settings()
    app = create_app(settings)
    app.run(host=settings.host, port=settings.port, debug=settings.flask_debug)

if __name__ == "__main__":
    main()
