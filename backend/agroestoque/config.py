from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator, field_validator
import secrets

BASE_DIR = Path(__file__).resolve().parent.parent  # backend/

ISOLATION_LEVELS = {"SERIALIZABLE", "REPEATABLE READ", "READ COMMITTED", "READ UNCOMMITTED", "AUTOCOMMIT"}


class Settings(BaseSettings):
    # ===== AMBIENTE =====
    environment: str = Field(default="development", env="ENVIRONMENT")
    debug: bool = Field(default=False, env="DEBUG")

    # ===== BANCO DE DADOS =====
    database_url: str = Field(default="sqlite:///./data/agroestoque.db", env="DATABASE_URL")
    # Isolamento usado pelas transações do razão de estoque (linha de Estoque serializada por produto)
    database_isolation_level: str | None = Field(default="SERIALIZABLE", env="DATABASE_ISOLATION_LEVEL")

    # ===== SEGURANÇA =====
    secret_key: str = Field(
        default_factory=lambda: secrets.token_urlsafe(32),
        env="SECRET_KEY"
    )
    access_token_expire_minutes: int = Field(default=60, env="ACCESS_TOKEN_EXPIRE_MINUTES")
    auth_cookie_name: str = Field(default="awg-stock-manager-token", env="AUTH_COOKIE_NAME")

    # ===== CORS =====
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        env="ALLOWED_ORIGINS"
    )

    # ===== LOGS =====
    log_dir: str = Field(default="logs", env="LOG_DIR")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    class Config:
        env_file = ".env"
        case_sensitive = False

    @field_validator("database_isolation_level", mode="after")
    @classmethod
    def normalize_isolation(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip().upper().replace("_", " ")
        if v not in ISOLATION_LEVELS:
            raise ValueError(f"Nível de isolamento inválido: {v}")
        return v

    @model_validator(mode="after")
    def validate_secret_key(self):
        if self.environment == "production" and len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY deve ter pelo menos 32 caracteres em produção.")
        return self

    @property
    def env(self) -> str:
        return "dev" if self.environment in ("development", "dev") else self.environment

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


settings = Settings()
