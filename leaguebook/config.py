"""
Runtime configuration, read from the environment.
Defaults are suitable for local development.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _default_db_path() -> Path:
    # ./data/league.db under the working directory, never inside the installed package
    return Path.cwd() / "data" / "league.db"


@dataclass
class Settings:
    db_path: Path
    log_level: str = "INFO"
    # Remote snapshot (GitHub contents API)
    github_owner: str = ""
    github_repo: str = ""
    github_path: str = "data/league.json"
    github_branch: str = "main"
    github_token: str | None = None
    remote_timeout: float = 10.0
    # Admin flag
    admin_password_hash: str = ""
    admin_password: str = ""
    jwt_secret_key: str = "leaguebook-dev-secret-change-in-production"
    access_token_expire_minutes: int = 60 * 24  # 1 day

    @property
    def remote_configured(self) -> bool:
        return bool(self.github_owner and self.github_repo)


def load_settings() -> Settings:
    env = os.environ
    return Settings(
        db_path=Path(env.get("LEAGUEBOOK_DB_PATH") or _default_db_path()),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        github_owner=env.get("GITHUB_OWNER", "").strip(),
        github_repo=env.get("GITHUB_REPO", "").strip(),
        github_path=env.get("GITHUB_PATH", "data/league.json").strip(),
        github_branch=env.get("GITHUB_BRANCH", "main").strip(),
        github_token=env.get("GITHUB_TOKEN", "").strip() or None,
        remote_timeout=float(env.get("REMOTE_TIMEOUT", "10")),
        admin_password_hash=env.get("ADMIN_PASSWORD_HASH", "").strip(),
        admin_password=env.get("ADMIN_PASSWORD", ""),
        jwt_secret_key=env.get("JWT_SECRET_KEY", "leaguebook-dev-secret-change-in-production"),
        access_token_expire_minutes=int(env.get("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24))),
    )


settings = load_settings()
