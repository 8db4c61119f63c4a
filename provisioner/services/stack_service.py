from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from provisioner.config import APPDATA_BASE, COMPOSE_FILENAME, DATA_SUBDIR, ENV_FILENAME

logger = logging.getLogger(__name__)


@dataclass
class StackInfo:
    name: str
    path: str
    has_compose: bool
    has_env: bool
    data_path: str
    has_data: bool
    services: list[str] = field(default_factory=list)


def _parse_services(compose_path: Path) -> list[str]:
    """Service names from a compose file; the empty placeholder has none."""
    try:
        data = yaml.safe_load(compose_path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Cannot parse %s: %s", compose_path, exc)
        return []
    if not isinstance(data, dict) or not isinstance(data.get("services"), dict):
        return []
    return list(data["services"])


def list_stacks(stacks_dir: Path, appdata_base: str | Path = APPDATA_BASE) -> list[StackInfo]:
    if not stacks_dir.is_dir():
        return []

    stacks = []
    for entry in sorted(stacks_dir.iterdir()):
        if not entry.is_dir() or entry.name.startswith("."):
            continue

        compose = entry / COMPOSE_FILENAME
        data_dir = Path(appdata_base) / entry.name / DATA_SUBDIR
        stacks.append(StackInfo(
            name=entry.name,
            path=str(entry),
            has_compose=compose.is_file(),
            has_env=(entry / ENV_FILENAME).is_file(),
            data_path=str(data_dir),
            has_data=data_dir.is_dir(),
            services=_parse_services(compose) if compose.is_file() else [],
        ))

    return stacks


def get_stack(stacks_dir: Path, name: str) -> StackInfo | None:
    for s in list_stacks(stacks_dir):
        if s.name == name:
            return s
    return None
