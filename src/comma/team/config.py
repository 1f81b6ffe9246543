"""
Shared team configuration.

A team file lives at <config_dir>/teams/<team>.json:

    {
      "name": "platform",
      "description": "...",
      "templates": {"default": {"name": "default", "content": "..."}},
      "default_template": "default",
      "convention_checks": [
        {"name": "conventional", "regex": "^(feat|fix)...", "required": true,
         "error_msg": "Use conventional commits"}
      ],
      "allowed_providers": [],
      "requires_approval": false,
      "admin_users": []
    }
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..commit.validator import ConventionRule
from ..errors import TeamConfigError

logger = logging.getLogger(__name__)

# Hosts whose first path segment names the organization
REMOTE_ORG_PATTERNS = [
    re.compile(r"github\.com[/:]([^/]+)"),
    re.compile(r"gitlab\.com[/:]([^/]+)"),
    re.compile(r"bitbucket\.org[/:]([^/]+)"),
]

_SAFE_TEAM_NAME = re.compile(r"^[\w.-]+$")


def _as_bool(value: Any) -> bool:
    """JSON booleans as-is; strings like "false" or "no" are parsed."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


@dataclass
class TeamTemplate:
    """A shared prompt template"""
    name: str
    content: str
    description: str = ""
    author: str = ""
    created: str = ""
    tags: List[str] = field(default_factory=list)


@dataclass
class TeamConfig:
    """Configuration shared by a team"""
    name: str
    description: str = ""
    templates: Dict[str, TeamTemplate] = field(default_factory=dict)
    convention_checks: List[ConventionRule] = field(default_factory=list)
    default_template: str = ""
    allowed_providers: List[str] = field(default_factory=list)
    requires_approval: bool = False
    admin_users: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamConfig":
        """
        Build a config from decoded JSON.

        Raises:
            TeamConfigError: If the structure is invalid
        """
        if not isinstance(data, dict):
            raise TeamConfigError("Team configuration must be a JSON object")

        try:
            templates = {
                key: TeamTemplate(
                    name=value.get("name", key),
                    content=value.get("content", ""),
                    description=value.get("description", ""),
                    author=value.get("author", ""),
                    created=value.get("created", ""),
                    tags=list(value.get("tags") or []),
                )
                for key, value in (data.get("templates") or {}).items()
            }
            checks = [
                ConventionRule(
                    name=check.get("name", ""),
                    pattern=str(check.get("regex") or ""),
                    required=_as_bool(check.get("required", False)),
                    error_message=check.get("error_msg", ""),
                    description=check.get("description", ""),
                )
                for check in (data.get("convention_checks") or [])
            ]
        except (AttributeError, TypeError) as e:
            raise TeamConfigError(f"Invalid team configuration: {e}") from e

        return cls(
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            templates=templates,
            convention_checks=checks,
            default_template=str(data.get("default_template", "")),
            allowed_providers=list(data.get("allowed_providers") or []),
            requires_approval=bool(data.get("requires_approval", False)),
            admin_users=list(data.get("admin_users") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "templates": {
                key: {
                    "name": t.name,
                    "description": t.description,
                    "content": t.content,
                    "author": t.author,
                    "created": t.created,
                    "tags": t.tags,
                }
                for key, t in self.templates.items()
            },
            "convention_checks": [
                {
                    "name": rule.name,
                    "description": rule.description,
                    "regex": rule.pattern,
                    "required": rule.required,
                    "error_msg": rule.error_message,
                }
                for rule in self.convention_checks
            ],
            "default_template": self.default_template,
            "allowed_providers": self.allowed_providers,
            "requires_approval": self.requires_approval,
            "admin_users": self.admin_users,
        }


def detect_team_from_remote(remote_url: Optional[str]) -> Optional[str]:
    """
    Extract the organization from a GitHub/GitLab/Bitbucket remote URL.

    Examples:
        >>> detect_team_from_remote("git@github.com:acme/widgets.git")
        'acme'
        >>> detect_team_from_remote("https://gitlab.com/platform/api")
        'platform'
    """
    if not remote_url:
        return None

    for pattern in REMOTE_ORG_PATTERNS:
        match = pattern.search(remote_url.strip())
        if match:
            return match.group(1)
    return None


class TeamManager:
    """
    Loads and stores team configuration files.

    Example:
        teams = TeamManager(settings.teams_dir)
        rules = teams.load_rules("platform")
        template = teams.load_template("platform")
    """

    def __init__(self, teams_dir: Union[str, Path]):
        self.teams_dir = Path(teams_dir)
        self._loaded: Dict[str, TeamConfig] = {}

    def _path_for(self, team: str) -> Path:
        if not _SAFE_TEAM_NAME.match(team):
            raise TeamConfigError(f"Invalid team name: {team!r}")
        return self.teams_dir / f"{team}.json"

    def load_team(self, team: str) -> TeamConfig:
        """
        Load a team configuration.

        Raises:
            TeamConfigError: If the file is missing, unreadable or invalid
        """
        if team in self._loaded:
            return self._loaded[team]

        path = self._path_for(team)
        if not path.exists():
            raise TeamConfigError(f"Team configuration not found: {team}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise TeamConfigError(f"Failed to read team config: {e}") from e
        except ValueError as e:
            raise TeamConfigError(f"Failed to parse team config: {e}") from e

        config = TeamConfig.from_dict(data)
        if not config.name:
            config.name = team

        self._loaded[team] = config
        logger.debug(f"Loaded team '{team}' with {len(config.convention_checks)} convention checks")
        return config

    def load_rules(self, team: str) -> List[ConventionRule]:
        """Convention checks for a team."""
        return list(self.load_team(team).convention_checks)

    def load_template(self, team: str, template_name: str = "") -> Optional[str]:
        """
        Template content for a team.

        Args:
            team: Team name
            template_name: Template to use; the team's default when empty

        Returns:
            Template content, or None when the team has no such template
        """
        config = self.load_team(team)
        name = template_name or config.default_template
        template = config.templates.get(name) if name else None

        if template is None or not template.content.strip():
            if name:
                logger.debug(f"Template '{name}' not found for team '{team}'")
            return None
        return template.content

    def save_team(self, config: TeamConfig) -> Path:
        """Write a team configuration, replacing any existing file."""
        path = self._path_for(config.name)
        try:
            self.teams_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2)
        except OSError as e:
            raise TeamConfigError(f"Failed to write team config: {e}") from e

        self._loaded[config.name] = config
        return path

    def import_from_json(self, data: Union[str, bytes]) -> str:
        """
        Import a team configuration from JSON text.

        Returns:
            Name of the imported team

        Raises:
            TeamConfigError: If the JSON is invalid or has no name
        """
        try:
            decoded = json.loads(data)
        except ValueError as e:
            raise TeamConfigError(f"Failed to parse team config: {e}") from e

        config = TeamConfig.from_dict(decoded)
        if not config.name:
            raise TeamConfigError("Team name is missing in config")

        self.save_team(config)
        logger.info(f"Imported team configuration '{config.name}'")
        return config.name
