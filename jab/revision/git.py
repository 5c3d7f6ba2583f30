"""Git-backed revision store.

Each project is a plain git repository; every saved dump is one commit that
touches only the tracked file. All git access goes through GitPython.
"""

import logging
from datetime import datetime
from pathlib import Path

from git import Repo
from git.exc import BadName, BadObject, GitError, InvalidGitRepositoryError, NoSuchPathError

from jab.errors import (
    NoRevisions,
    PathNotTracked,
    RepositoryNotFound,
    RevisionNotFound,
    RevisionStoreError,
)
from jab.revision.base import Revision, RevisionStore

logger = logging.getLogger(__name__)


class GitRevisionStore(RevisionStore):

    def __init__(self, path):
        super().__init__(Path(path))
        try:
            self._repo = Repo(str(self.path))
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryNotFound(self.path) from e

    @classmethod
    def exists(cls, path):
        try:
            Repo(str(path))
        except (InvalidGitRepositoryError, NoSuchPathError):
            return False
        return True

    @classmethod
    def init(cls, path):
        path = Path(path)
        if not cls.exists(path):
            logger.debug("Initializing git repository at %s", path)
            path.mkdir(parents=True, exist_ok=True)
            try:
                Repo.init(str(path))
            except GitError as e:
                raise RevisionStoreError(f"Could not initialize repository at {path}: {e}", path) from e
        return cls(path)

    def commit_file(self, relative_path, message):
        try:
            self._repo.index.add([str(relative_path)])
            commit = self._repo.index.commit(message)
        except (GitError, OSError) as e:
            raise RevisionStoreError(f"Could not commit {relative_path} in {self.path}: {e}", self.path) from e
        logger.debug("Committed %s as %s", relative_path, commit.hexsha)
        return commit.hexsha

    def get_file_content_at(self, relative_path, revision_id):
        try:
            commit = self._repo.commit(revision_id)
        except (BadName, BadObject, ValueError) as e:
            raise RevisionNotFound(revision_id, self.path) from e

        try:
            blob = commit.tree / Path(relative_path).as_posix()
        except KeyError as e:
            raise PathNotTracked(relative_path, revision_id, self.path) from e
        return blob.data_stream.read()

    def last_revision_id(self):
        if not self._repo.head.is_valid():
            raise NoRevisions(self.path)
        return self._repo.head.commit.hexsha

    def iter_revisions(self):
        if not self._repo.head.is_valid():
            return iter(())
        return self._walk(self._repo.head.commit.hexsha)

    def _walk(self, head):
        for commit in self._repo.iter_commits(rev=head):
            yield Revision(
                id=commit.hexsha,
                message=commit.message.strip(),
                author=str(commit.author),
                timestamp=datetime.fromtimestamp(commit.committed_date),
            )
