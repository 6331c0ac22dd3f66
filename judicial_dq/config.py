"""Central configuration — loads from .env and environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


_BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=str(_BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Environment ──────────────────────────────────────────────
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # ── Storage ──────────────────────────────────────────────────
    store_db_path: str = str(_BASE_DIR / "data" / "judicial.db")
    snapshot_db_path: str = str(_BASE_DIR / "data" / "snapshots.db")
    audit_db_path: str = str(_BASE_DIR / "data" / "audit.db")

    # ── Paths ────────────────────────────────────────────────────
    report_dir: str = str(_BASE_DIR / "data" / "reports")

    # ── Remediation ──────────────────────────────────────────────
    dry_run_default: bool = True
    resync_priority: int = 7

    # ── Snapshots ────────────────────────────────────────────────
    case_volume_threshold: int = 500

    # ── API ──────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ── Helpers ──────────────────────────────────────────────────
    def ensure_dirs(self) -> None:
        """Create all required data directories."""
        for d in (
            self.report_dir,
            str(Path(self.store_db_path).parent),
            str(Path(self.snapshot_db_path).parent),
            str(Path(self.audit_db_path).parent),
        ):
            Path(d).mkdir(parents=True, exist_ok=True)


def get_settings() -> Settings:
    """Return a Settings instance."""
    return Settings()


if __name__ == "__main__":
    s = get_settings()
    s.ensure_dirs()
    print(f"Environment : {s.environment}")
    print(f"Store DB    : {s.store_db_path}")
    print(f"Snapshots   : {s.snapshot_db_path}")
    print(f"Dry run     : {s.dry_run_default}")
    print("✓ Config loaded successfully")
