"""
Shared plumbing for the consumer bindings.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from archfolio.config.core.manager import ConfigurationManager, LoadedConfig
from archfolio.logger import get_archfolio_logger

DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%Y")


def parse_date(value: Any) -> Optional[datetime]:
    """Parse `YYYY-MM-DD`, `YYYY-MM` or `YYYY`; anything else yields None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


class SectionBinding:
    """
    Read/write view over one section of the live configuration.

    Reads always go through `manager.get`; writes build a new value and store
    it with `manager.set`, guarded by the version read before the lookup.
    """

    section: str = ""

    def __init__(self, manager: ConfigurationManager, section: Optional[str] = None):
        self.manager = manager
        if section is not None:
            self.section = section
        self.logger = get_archfolio_logger().bind(component=type(self).__name__)

    def path(self, *keys: str) -> str:
        return ".".join((self.section,) + keys)

    def get(self, *keys: str, default: Any = None) -> Any:
        return self.manager.get(self.path(*keys), default)

    def config(self) -> Dict[str, Any]:
        return self.manager.get(self.section, {})

    def is_enabled(self) -> bool:
        return bool(self.get("enabled", default=False))

    def _update_list(self, key: str,
                     transform: Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]]) -> LoadedConfig:
        path = self.path(key)
        version = self.manager.version
        current = self.manager.get(path, [])
        return self.manager.set(path, transform(list(current)), expected_version=version)

    def _replace_where(self, key: str, match: Callable[[Dict[str, Any]], bool],
                       updates: Dict[str, Any], label: str) -> Optional[LoadedConfig]:
        current = self.manager.get(self.path(key), [])
        if not any(match(item) for item in current):
            self.logger.warning("Nothing to update", section=self.section, item=label)
            return None
        return self._update_list(
            key, lambda items: [{**item, **updates} if match(item) else item for item in items]
        )
