
"""Taxonomia de erros do cache de cardápio."""
from __future__ import annotations

class MenuCacheError(Exception):
    """Base de todos os erros do pacote."""

class StorageUnavailable(MenuCacheError):
    """O meio de armazenamento não pôde ser aberto, migrado ou lido."""

class StorageWriteError(MenuCacheError):
    """Falha ao gravar (replace_all). O conteúdo anterior continua válido no schema."""

class RemoteUnavailable(MenuCacheError):
    """Falha de rede, timeout ou status HTTP não-2xx na origem remota."""

class RemoteMalformed(MenuCacheError):
    """Documento remoto não é JSON ou não tem o formato esperado."""

class BootstrapFailed(MenuCacheError):
    """Bootstrap não concluiu; `cause` guarda o erro de origem (store ou remoto)."""
    def __init__(self, cause: MenuCacheError):
        super().__init__(f"bootstrap failed: {cause}")
        self.cause = cause

class QueryFailed(MenuCacheError):
    """Consulta de filtro falhou; a última projeção válida continua em exibição."""

class ResyncFailed(MenuCacheError):
    """Ressincronização manual falhou; o conteúdo anterior foi mantido."""
    def __init__(self, cause: MenuCacheError):
        super().__init__(f"resync failed: {cause}")
        self.cause = cause

class OrchestratorStateError(MenuCacheError):
    """Operação chamada em estado inválido do orquestrador."""
