"""
Experience and education timeline bindings.
"""

from typing import Any, Dict, List, Optional, Tuple

from archfolio.config.core.manager import ConfigurationManager, LoadedConfig

from .base import SectionBinding, parse_date


def timeline_sort_key(item: Dict[str, Any]) -> Tuple[int, int, int]:
    # Current entries first, then newest start date; unparseable dates last
    started = parse_date(item.get("startDate"))
    return (
        0 if item.get("current") else 1,
        0 if started else 1,
        -started.toordinal() if started else 0,
    )


class TimelineBinding(SectionBinding):
    """
    Dated entries of the experience or education section.

    Parameters
    ----------
    manager : ConfigurationManager
        Live configuration
    section : str
        'experience' or 'education'
    """

    def __init__(self, manager: ConfigurationManager, section: str):
        super().__init__(manager, section)

    def items(self) -> List[Dict[str, Any]]:
        return self.get("items", default=[])

    def sorted_items(self) -> List[Dict[str, Any]]:
        return sorted(self.items(), key=timeline_sort_key)

    def current_items(self) -> List[Dict[str, Any]]:
        return [item for item in self.items() if item.get("current")]

    def item(self, item_id: str) -> Optional[Dict[str, Any]]:
        return next((item for item in self.items() if item.get("id") == item_id), None)

    def add(self, item: Dict[str, Any]) -> LoadedConfig:
        return self._update_list("items", lambda items: items + [dict(item)])

    def update(self, item_id: str, updates: Dict[str, Any]) -> Optional[LoadedConfig]:
        return self._replace_where("items", lambda item: item.get("id") == item_id, updates, item_id)

    def remove(self, item_id: str) -> LoadedConfig:
        return self._update_list("items", lambda items: [i for i in items if i.get("id") != item_id])
