"""On-disk persistence of the web control setting."""
import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from ..models import WebControlSetting

logger = logging.getLogger(__name__)


class JsonSettingsStore:
    """Keeps a WebControlSetting in a JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._setting = self._read()

    @property
    def setting(self) -> WebControlSetting:
        return self._setting

    def save(self, setting: WebControlSetting) -> WebControlSetting:
        """Persist `setting` and make it current."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(setting.model_dump_json(by_alias=True, indent=2))
        self._setting = setting
        return setting

    def update(self, **changes) -> WebControlSetting:
        """Persist the current setting with some fields changed."""
        return self.save(self._setting.model_copy(update=changes))

    def _read(self) -> WebControlSetting:
        try:
            return WebControlSetting.model_validate_json(self.path.read_text())
        except FileNotFoundError:
            return WebControlSetting()
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable web control setting {self.path}: {e}")
            return WebControlSetting()
