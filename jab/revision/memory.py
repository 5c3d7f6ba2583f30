"""In-process revision store.

Keeps history in a module-level dict keyed by repository path, so separate
store instances bound to the same path share one history, like separate
handles onto the same on-disk repository. The working file is still read from
disk on commit.
"""

import hashlib
from datetime import datetime
from pathlib import Path

from jab.errors import NoRevisions, PathNotTracked, RepositoryNotFound, RevisionNotFound
from jab.revision.base import Revision, RevisionStore

_REPOS = {}


def _key(path):
    return str(Path(path).resolve())


class MemoryRevisionStore(RevisionStore):

    def __init__(self, path):
        super().__init__(Path(path))
        if _key(self.path) not in _REPOS:
            raise RepositoryNotFound(self.path)
        self._history = _REPOS[_key(self.path)]

    @classmethod
    def exists(cls, path):
        return _key(path) in _REPOS

    @classmethod
    def init(cls, path):
        Path(path).mkdir(parents=True, exist_ok=True)
        _REPOS.setdefault(_key(path), [])
        return cls(path)

    @classmethod
    def reset(cls):
        """Forget every repository. Test helper."""
        _REPOS.clear()

    def commit_file(self, relative_path, message):
        parent = self._history[-1] if self._history else None
        files = dict(parent["files"]) if parent else {}
        files[str(relative_path)] = (self.path / relative_path).read_bytes()

        digest = hashlib.sha1()
        digest.update((parent["revision"].id if parent else "").encode())
        digest.update(message.encode())
        digest.update(files[str(relative_path)])
        digest.update(str(len(self._history)).encode())

        revision = Revision(
            id=digest.hexdigest(),
            message=message.strip(),
            author="jab",
            timestamp=datetime.now(),
        )
        self._history.append({"revision": revision, "files": files})
        return revision.id

    def get_file_content_at(self, relative_path, revision_id):
        for entry in self._history:
            if entry["revision"].id == revision_id:
                if str(relative_path) not in entry["files"]:
                    raise PathNotTracked(relative_path, revision_id, self.path)
                return entry["files"][str(relative_path)]
        raise RevisionNotFound(revision_id, self.path)

    def last_revision_id(self):
        if not self._history:
            raise NoRevisions(self.path)
        return self._history[-1]["revision"].id

    def iter_revisions(self):
        snapshot = list(self._history)
        return (entry["revision"] for entry in reversed(snapshot))
