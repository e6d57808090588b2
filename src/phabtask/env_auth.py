"""Environment-based Conduit credentials.

Only the HTTP transport needs a token; ``arc`` reads its own ``~/.arcrc``.
Tokens may live in the environment or in a ``.env`` file next to the
project, loaded with python-dotenv.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

TOKEN_VARS = ("PHABTASK_CONDUIT_TOKEN", "CONDUIT_TOKEN", "CONDUIT_API_TOKEN")


@dataclass
class EnvAuthConfig:
    """Configuration for environment-based authentication."""

    load_dotenv: bool = True
    dotenv_path: str | None = None


class EnvironmentAuthManager:
    """Looks up the Conduit API token in the environment and ``.env`` files."""

    def __init__(self, config: EnvAuthConfig):
        self.config = config
        self.logger = get_logger()
        self._dotenv_loaded = False
        if config.load_dotenv:
            self._load_dotenv()

    def _load_dotenv(self) -> None:
        if self.config.dotenv_path:
            locations = [self.config.dotenv_path]
        else:
            locations = [".env", ".env.local"]
        for location in locations:
            env_path = Path(location)
            if env_path.is_file():
                load_dotenv(str(env_path))
                self._dotenv_loaded = True
                self.logger.debug(f"Loaded environment variables from {env_path}")
                break

    def get_conduit_token(self) -> str | None:
        for name in TOKEN_VARS:
            raw = os.getenv(name)
            if raw and raw.strip():
                self.logger.debug(f"Found Conduit token in {name}")
                return raw.strip()
        return None


def create_env_auth_manager(config: EnvAuthConfig | None = None) -> EnvironmentAuthManager:
    """Factory function to create environment authentication manager."""
    if config is None:
        config = EnvAuthConfig()
    return EnvironmentAuthManager(config)


def get_conduit_token(config: EnvAuthConfig | None = None) -> str | None:
    return create_env_auth_manager(config).get_conduit_token()


__all__ = [
    "EnvAuthConfig",
    "EnvironmentAuthManager",
    "TOKEN_VARS",
    "create_env_auth_manager",
    "get_conduit_token",
]
