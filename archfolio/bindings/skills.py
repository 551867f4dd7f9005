"""
Skill bindings.
"""

from typing import Any, Dict, List, Optional

from archfolio.config.core.manager import LoadedConfig

from .base import SectionBinding


def _level(skill: Dict[str, Any]) -> float:
    level = skill.get("level")
    return level if isinstance(level, (int, float)) else 0


class SkillsBinding(SectionBinding):
    """Skills keyed by name."""

    section = "skills"

    def items(self) -> List[Dict[str, Any]]:
        return self.get("items", default=[])

    def by_category(self) -> Dict[str, List[Dict[str, Any]]]:
        """Skills grouped by category, each group ordered by level, highest first."""
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for skill in self.items():
            grouped.setdefault(skill.get("category"), []).append(skill)
        return {category: sorted(skills, key=_level, reverse=True) for category, skills in grouped.items()}

    def categories(self) -> List[str]:
        return sorted({skill["category"] for skill in self.items() if skill.get("category")})

    def top(self, n: int = 10) -> List[Dict[str, Any]]:
        return sorted(self.items(), key=_level, reverse=True)[:n]

    def add_skill(self, skill: Dict[str, Any]) -> LoadedConfig:
        return self._update_list("items", lambda skills: skills + [dict(skill)])

    def update_skill(self, name: str, updates: Dict[str, Any]) -> Optional[LoadedConfig]:
        return self._replace_where("items", lambda skill: skill.get("name") == name, updates, name)

    def remove_skill(self, name: str) -> LoadedConfig:
        return self._update_list("items", lambda skills: [s for s in skills if s.get("name") != name])
