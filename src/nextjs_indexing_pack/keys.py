"""IndexNow key management used by the init command."""

import logging
import secrets
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

ENV_VAR = "INDEXNOW_KEY"

EnvStatus = Literal["created", "updated", "skipped"]


def generate_indexnow_key() -> str:
    """Generate a random IndexNow key.

    IndexNow accepts 8-128 hexadecimal characters; 16 random bytes give 32.
    """
    return secrets.token_hex(16)


def write_key_file(public_dir: Path, key: str) -> Path:
    """Write the public key file served at ``/<key>.txt``.

    Args:
        public_dir: Next.js ``public`` directory (created if missing)
        key: IndexNow key

    Returns:
        Path to the written key file
    """
    public_dir.mkdir(parents=True, exist_ok=True)
    key_file = public_dir / f"{key}.txt"
    key_file.write_text(key, encoding="utf-8")
    logger.info(f"Wrote IndexNow key file {key_file}")
    return key_file


def append_env_local(env_path: Path, key: str) -> EnvStatus:
    """Add ``INDEXNOW_KEY`` to an env file unless it is already defined.

    Args:
        env_path: Path to ``.env.local``
        key: IndexNow key

    Returns:
        "created", "updated" or "skipped"
    """
    line = f"{ENV_VAR}={key}"
    if not env_path.exists():
        env_path.write_text(f"{line}\n", encoding="utf-8")
        return "created"

    contents = env_path.read_text(encoding="utf-8")
    if f"{ENV_VAR}=" in contents:
        return "skipped"

    separator = "" if contents.endswith("\n") or not contents else "\n"
    env_path.write_text(f"{contents}{separator}{line}\n", encoding="utf-8")
    return "updated"
