"""Application settings and configuration (Pydantic v2)."""
from typing import FrozenSet

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Database (Docker uses host "db")
    database_url: str = Field(
        default="postgresql://geofence_user:geofence_pass@db:5432/supervision",
        description="SQLAlchemy DSN",
    )

    # JWT
    jwt_secret_key: str = Field(default="change-this-jwt-secret-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_access_token_expire_minutes: int = Field(default=30)

    # Bootstrap admin user (token issuer for the review tooling)
    admin_user: str = Field(default="admin")
    admin_pass: str = Field(default="admin123")
    admin_id: int = Field(default=1)
    admin_roles: str = Field(default="super_admin")

    # Geofence
    default_geofence_radius_m: float = Field(
        default=100.0, gt=0, description="Used when a school has no radius set"
    )

    # Suspicion heuristics
    suspicion_far_outside_multiplier: float = Field(default=3.0, gt=0)
    suspicion_small_radius_m: float = Field(default=50.0, ge=0)
    suspicion_flag_imprecise_accuracy: bool = Field(default=True)
    suspicion_flag_weak_signal: bool = Field(default=True)

    # Override workflow
    override_roles: str = Field(default="super_admin,head_of_teaching_practice")
    override_min_reason_length: int = Field(default=10, ge=1)

    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="",
    )

    @property
    def override_role_set(self) -> FrozenSet[str]:
        return _split_roles(self.override_roles)

    @property
    def admin_role_set(self) -> FrozenSet[str]:
        return _split_roles(self.admin_roles)


def _split_roles(raw: str) -> FrozenSet[str]:
    return frozenset(r.strip() for r in raw.split(",") if r.strip())


# Global settings instance
settings = Settings()
