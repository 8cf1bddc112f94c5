"""Environment helpers for reading credentials from mounted secret files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

SECRET_FILE_SUFFIX = "_FILE"


def _candidate_keys(prefixes: Optional[Iterable[str]]) -> list[tuple[str, str]]:
    candidates = []
    for key, file_path in os.environ.items():
        if not key.endswith(SECRET_FILE_SUFFIX):
            continue
        if prefixes is not None and not key.startswith(tuple(prefixes)):
            continue
        candidates.append((key, file_path))
    return candidates


def load_secret_file_variables(prefixes: Optional[Iterable[str]] = None) -> None:
    """
    Expose the content of ``KEY_FILE`` secret files as ``KEY``.

    Tenant passwords are usually mounted as files (``C8Y_PASSWORD_FILE``).
    An explicit ``KEY`` always wins over its file. Unreadable files are
    logged and skipped.

    Args:
        prefixes: Restrict resolution to variables starting with one of
            these prefixes. ``None`` resolves every ``*_FILE`` variable.
    """
    for key, file_path in _candidate_keys(prefixes):
        target_key = key[: -len(SECRET_FILE_SUFFIX)]
        if os.environ.get(target_key) or not file_path:
            continue
        try:
            os.environ[target_key] = Path(file_path).read_text(encoding="utf-8").strip()
        except FileNotFoundError as exc:
            logger.warning(
                "env.secret_file.missing",
                extra={"key": key, "path": file_path, "error": str(exc)},
            )
        except UnicodeDecodeError as exc:
            logger.warning(
                "env.secret_file.decode_failed",
                extra={"key": key, "path": file_path, "error": str(exc)},
            )
        except OSError as exc:
            logger.warning(
                "env.secret_file.load_failed",
                extra={"key": key, "path": file_path, "error": str(exc)},
            )
