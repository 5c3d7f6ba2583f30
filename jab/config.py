"""Project registry persisted at ~/.jab/config.

The registry is loaded once, mutated in memory, and written back explicitly.
Nothing guards the load/mutate/persist sequence against another process doing
the same; callers that may run concurrently must serialize it themselves.
"""

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from jab.errors import ConfigParseError, ProjectConfigNotFound

JAB_HOME_ENV = "JAB_HOME"
CONFIG_FILENAME = "config"
PROJECTS_DIRNAME = "projects"


def get_jab_dir():
    """$JAB_HOME if set, otherwise ~/.jab."""
    override = os.environ.get(JAB_HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".jab"


def get_projects_dir(jab_dir=None):
    """Root directory every project repository is created under."""
    return Path(jab_dir or get_jab_dir()) / PROJECTS_DIRNAME


@dataclass(frozen=True)
class ProjectConfig:
    name: str
    db_uri: str

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        return cls(name=data["name"], db_uri=data["db_uri"])


class JabConfig:

    def __init__(self, projects=None):
        self.projects = dict(projects or {})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @staticmethod
    def get_path(jab_dir=None):
        return Path(jab_dir or get_jab_dir()) / CONFIG_FILENAME

    @classmethod
    def read(cls, jab_dir=None):
        """Load the registry. OSError if unreadable, ConfigParseError if malformed."""
        config_path = cls.get_path(jab_dir)
        raw = config_path.read_bytes()
        try:
            data = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigParseError(config_path, e) from e
        return cls.from_dict(data, config_path)

    @classmethod
    def persist(cls, config, jab_dir=None):
        config_path = cls.get_path(jab_dir)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config.to_json(), encoding="utf-8")
        return config_path

    @classmethod
    def empty_config_str(cls):
        return cls().to_json()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self):
        return {"projects": {name: pc.to_dict() for name, pc in self.projects.items()}}

    def to_json(self):
        return json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n"

    @classmethod
    def from_dict(cls, data, source="<config>"):
        if not isinstance(data, dict) or not isinstance(data.get("projects"), dict):
            raise ConfigParseError(source, "expected an object with a 'projects' object")
        projects = {}
        for name, entry in data["projects"].items():
            try:
                projects[name] = ProjectConfig.from_dict(entry)
            except (KeyError, TypeError) as e:
                raise ConfigParseError(source, f"project {name!r} is missing {e}") from e
        return cls(projects)

    # ------------------------------------------------------------------
    # Registry operations
    # ------------------------------------------------------------------

    def register_project_config(self, project_config):
        self.projects[project_config.name] = project_config

    def project_config(self, name):
        if name not in self.projects:
            raise ProjectConfigNotFound(name)
        return self.projects[name]

    def remove_project_config(self, name):
        if name not in self.projects:
            raise ProjectConfigNotFound(name)
        return self.projects.pop(name)


def init_jab_dir(jab_dir=None):
    """Create the jab directory and seed an empty registry. Idempotent."""
    config_path = JabConfig.get_path(jab_dir)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    get_projects_dir(jab_dir).mkdir(parents=True, exist_ok=True)
    if not config_path.exists():
        config_path.write_text(JabConfig.empty_config_str())
    return config_path
