"""Desktop copy of the stream configuration list."""
import logging
from typing import Any, Dict, Iterable, List

from ..models import StreamConfig

logger = logging.getLogger(__name__)


class StreamConfigStore:
    """Ordered list of stream configs, newest first."""

    def __init__(self, configs: Iterable[StreamConfig] = ()):
        self._configs: List[StreamConfig] = list(configs)

    def __len__(self) -> int:
        return len(self._configs)

    def __iter__(self):
        return iter(self._configs)

    def get(self, config_id: str) -> StreamConfig:
        for config in self._configs:
            if config.id == config_id:
                return config
        raise KeyError(config_id)

    def add(self, config: StreamConfig) -> None:
        self._configs.insert(0, config)

    def update(self, config: StreamConfig, config_id: str) -> None:
        """Replace the config with `config_id`; unknown ids are ignored."""
        self._configs = [config if c.id == config_id else c for c in self._configs]

    def remove(self, config_id: str) -> None:
        self._configs = [c for c in self._configs if c.id != config_id]

    def replace_all(self, configs: Iterable[StreamConfig]) -> None:
        self._configs = list(configs)

    def as_payload(self) -> List[Dict[str, Any]]:
        """JSON-ready list for UPDATE_STREAM_CONFIG_LIST."""
        return [c.model_dump(exclude_none=True) for c in self._configs]
