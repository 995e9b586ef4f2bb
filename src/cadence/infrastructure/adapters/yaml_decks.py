"""
YAML deck config adapter.

Each deck lives in `<deck_dir>/<deck_id>.yaml` as a flat mapping of
DeckConfig fields. Missing fields fall back to the defaults.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from yaml import YAMLError

from cadence.application.scheduling.deck_config import DeckConfigManager
from cadence.domain.errors import StoreError
from cadence.domain.scheduling.models import DeckConfig
from cadence.domain.scheduling.ports import DeckConfigStore

logger = logging.getLogger(__name__)


def load_deck_file(path: Path) -> dict[str, Any]:
    """
    Read a deck config file into a plain mapping (not yet validated).

    Raises:
        ValueError: If the file is not valid YAML or not a mapping.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of deck config fields")
    return data


def dump_deck_config(values: dict[str, Any]) -> str:
    return yaml.safe_dump(values, sort_keys=False, allow_unicode=True)


class YamlDeckConfigStore(DeckConfigStore):
    def __init__(self, deck_dir: Path, manager: DeckConfigManager | None = None):
        self.deck_dir = deck_dir
        self._manager = manager or DeckConfigManager()

    def _path_for(self, deck_id: str) -> Path | None:
        for suffix in (".yaml", ".yml"):
            candidate = self.deck_dir / f"{deck_id}{suffix}"
            if candidate.exists():
                return candidate
        return None

    async def load_deck_config(self, deck_id: str) -> DeckConfig | None:
        """
        Raises:
            StoreError: If the deck file cannot be read or parsed.
            InvalidConfigError: If the deck file holds invalid values.
        """
        path = self._path_for(deck_id)
        if path is None:
            return None

        try:
            values = load_deck_file(path)
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot load deck config {deck_id}: {e}") from e
        values.setdefault("deck_id", deck_id)
        self._manager.ensure_valid(values)
        logger.debug(f"Loaded deck config {deck_id} from {path}")
        return self._manager.merge_with_defaults(values)
