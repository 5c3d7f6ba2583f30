from jab.revision.base import Revision, RevisionStore
from jab.revision.git import GitRevisionStore


def create_revision_store(backend="git"):
    """Return the RevisionStore class for a backend name.

    Backends:
        git: GitRevisionStore (default)
        memory: MemoryRevisionStore, history kept in process
    """
    if backend == "git":
        return GitRevisionStore

    if backend == "memory":
        from jab.revision.memory import MemoryRevisionStore
        return MemoryRevisionStore

    raise ValueError(f"Unknown revision backend: {backend!r}. Use 'git' or 'memory'.")


__all__ = ["Revision", "RevisionStore", "GitRevisionStore", "create_revision_store"]
