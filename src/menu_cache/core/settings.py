
"""Configurações Pydantic Settings para o cache de cardápio."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    """Configurações da aplicação. Carrega de env e .env (prefixo MC_)."""
    model_config = SettingsConfigDict(env_file=".env", env_prefix="MC_", case_sensitive=False)

    # Flask
    flask_debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # DB
    database_url: str = Field(default="sqlite:///little_lemon.db", description="URL SQLAlchemy do armazenamento local")

    # Origem remota do cardápio
    menu_url: str = Field(
        default="https://raw.githubusercontent.com/Meta-Mobile-Developer-PC/Working-With-Data-API/main/capstone.json",
    )
    image_base_url: str = Field(
        default="https://github.com/Meta-Mobile-Developer-PC/Working-With-Data-API/blob/main/images/",
    )
    fetch_timeout_ms: int = Field(default=10_000, gt=0, description="Aborta o fetch remoto após N ms")

    # Coalescência dos filtros
    debounce_ms: int = Field(default=500, ge=0)

    # Logging (níveis numéricos do stdlib: 10=debug, 20=info...)
    log_level: int = Field(default=20)
