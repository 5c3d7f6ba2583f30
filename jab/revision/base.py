from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Revision:
    id: str
    message: str
    author: str
    timestamp: datetime

    @property
    def short_id(self):
        return self.id[:8]


class RevisionStore(ABC):
    """Base interface for revision backends.

    A store is bound to exactly one repository path for its lifetime.
    Implementations: GitRevisionStore, MemoryRevisionStore (tests).
    """

    def __init__(self, path):
        self.path = path

    @classmethod
    @abstractmethod
    def exists(cls, path):
        """Return True if a repository already lives at path."""
        pass

    @classmethod
    @abstractmethod
    def init(cls, path):
        """Initialize a repository at path if absent. Returns the store."""
        pass

    @abstractmethod
    def commit_file(self, relative_path, message):
        """Record a new revision over a single file. Returns the revision ID."""
        pass

    @abstractmethod
    def get_file_content_at(self, relative_path, revision_id):
        """Return the file's bytes as of revision_id."""
        pass

    @abstractmethod
    def last_revision_id(self):
        """Return the ID of the most recent revision. Raises NoRevisions if empty."""
        pass

    @abstractmethod
    def iter_revisions(self):
        """Return an iterator of Revision objects, newest first.

        The history is fixed when this is called; later commits do not show up.
        """
        pass
