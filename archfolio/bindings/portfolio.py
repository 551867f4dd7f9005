"""
Portfolio project bindings.
"""

from typing import Any, Dict, List, Optional

from archfolio.config.core.manager import LoadedConfig

from .base import SectionBinding


class PortfolioBinding(SectionBinding):
    """Projects of the portfolio gallery."""

    section = "portfolio"

    def projects(self) -> List[Dict[str, Any]]:
        return self.get("projects", default=[])

    def featured_projects(self) -> List[Dict[str, Any]]:
        return [project for project in self.projects() if project.get("featured")]

    def projects_by_category(self) -> Dict[str, List[Dict[str, Any]]]:
        """Projects grouped by category, in insertion order."""
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for project in self.projects():
            grouped.setdefault(project.get("category"), []).append(project)
        return grouped

    def categories(self) -> List[str]:
        return sorted({project["category"] for project in self.projects() if project.get("category")})

    def project(self, project_id: str) -> Optional[Dict[str, Any]]:
        return next((project for project in self.projects() if project.get("id") == project_id), None)

    def add_project(self, project: Dict[str, Any]) -> LoadedConfig:
        return self._update_list("projects", lambda projects: projects + [dict(project)])

    def update_project(self, project_id: str, updates: Dict[str, Any]) -> Optional[LoadedConfig]:
        return self._replace_where(
            "projects", lambda project: project.get("id") == project_id, updates, project_id
        )

    def remove_project(self, project_id: str) -> LoadedConfig:
        return self._update_list(
            "projects", lambda projects: [p for p in projects if p.get("id") != project_id]
        )
