"""Setup phase: resolve derived options and write the runtime ``.env``."""

from __future__ import annotations

import logging
import secrets
from pathlib import Path
from typing import Dict, Mapping

from dotenv import dotenv_values, set_key

from .config import InstallerSettings
from .models import SetupDefaults

logger = logging.getLogger(__name__)

ENV_KEYS = {
    "stack": "AB_STACK_NAME",
    "port": "AB_PORT",
    "platform": "AB_PLATFORM",
    "db_password": "MYSQL_PASSWORD",
    "db_user": "MYSQL_USER",
    "db_name": "MYSQL_DATABASE",
    "node_env": "NODE_ENV",
}


def _pick(options: Mapping[str, object], existing: Mapping[str, object], key: str, fallback: object) -> object:
    value = options.get(key)
    if value is not None and value != "":
        return value
    stored = existing.get(ENV_KEYS[key])
    if stored:
        return stored
    return fallback


def run_setup(options: Mapping[str, object], workdir: Path, settings: InstallerSettings) -> Dict[str, object]:
    """Return the derived options for ``workdir`` and persist them in its ``.env``.

    Values already in ``options`` win, then values from an existing ``.env``,
    then installer defaults. A database password is generated when none is known.
    """

    env_path = workdir / ".env"
    existing: Dict[str, object] = dict(dotenv_values(env_path)) if env_path.exists() else {}

    defaults = SetupDefaults(
        stack=str(_pick(options, existing, "stack", settings.default_stack)),
        port=int(_pick(options, existing, "port", settings.default_port)),
        platform=str(_pick(options, existing, "platform", settings.default_platform)),
        db_password=str(_pick(options, existing, "db_password", "")) or secrets.token_urlsafe(18),
        db_user=str(_pick(options, existing, "db_user", "root")),
        db_name=str(_pick(options, existing, "db_name", "appbuilder-admin")),
        node_env=str(options.get("node_env") or "production"),
        travis_ci=bool(options.get("travis_ci")),
    )

    env_path.touch(exist_ok=True)
    payload = defaults.model_dump()
    for key, env_name in ENV_KEYS.items():
        set_key(str(env_path), env_name, str(payload[key]), quote_mode="never")
    logger.debug("wrote %s", env_path)
    return payload


__all__ = ["ENV_KEYS", "run_setup"]
