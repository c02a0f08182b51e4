"""Read IDE lock files so sessions can be matched to an open editor."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ccmanager.models import IdeInfo

logger = logging.getLogger("ccmanager.parsers")


def _lock_to_ide_info(payload: dict[str, Any]) -> IdeInfo | None:
    folders = payload.get("workspaceFolders")
    if not isinstance(folders, list):
        return None
    pid = payload.get("pid")
    return IdeInfo(
        pid=pid if isinstance(pid, int) else 0,
        workspace_folders=[f for f in folders if isinstance(f, str) and f],
        ide_name=str(payload.get("ideName") or ""),
        transport=str(payload.get("transport") or ""),
        running_in_windows=bool(payload.get("runningInWindows", False)),
        auth_token=str(payload.get("authToken") or ""),
    )


def load_ide_infos(ide_dir: Path) -> list[IdeInfo]:
    """Decode every ``*.lock`` file; unreadable or foreign files are skipped."""
    if not ide_dir.is_dir():
        return []
    infos: list[IdeInfo] = []
    try:
        lock_files = sorted(ide_dir.glob("*.lock"))
    except OSError as exc:
        logger.debug("Cannot list IDE locks in %s: %s", ide_dir, exc)
        return []
    for lock_file in lock_files:
        try:
            payload = json.loads(lock_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.debug("Skipping IDE lock %s: %s", lock_file.name, exc)
            continue
        if not isinstance(payload, dict):
            continue
        info = _lock_to_ide_info(payload)
        if info is not None:
            infos.append(info)
    return infos


def _is_within(path: str, folder: str) -> bool:
    base = folder.rstrip("/\\")
    return path == base or path.startswith(base + "/") or path.startswith(base + "\\")


def match_ide_info(project_path: str, infos: list[IdeInfo]) -> IdeInfo | None:
    """Pick the IDE whose workspace folder most closely contains the project."""
    best: IdeInfo | None = None
    best_len = -1
    for info in infos:
        for folder in info.workspace_folders:
            if _is_within(project_path, folder) and len(folder) > best_len:
                best = info
                best_len = len(folder)
    return best
