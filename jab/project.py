"""A project: one database, one repository, one tracked dump file.

Every save overwrites <repo>/dump.sql and commits it, so the repository
history is the archive of snapshots. A project assumes a single writer:
two processes saving the same project at once race on the dump file (last
write wins) and git serializes their commits in whatever order they land.
"""

import logging
import os
from pathlib import Path

from jab.revision import GitRevisionStore

logger = logging.getLogger(__name__)

DUMP_FILENAME = "dump.sql"


class Project:

    def __init__(self, name, project_dir, db_uri, store):
        self._name = name
        self._project_dir = Path(project_dir)
        self._repo_path = self._project_dir / name
        self._sql_path = Path(DUMP_FILENAME)
        self._db_uri = db_uri
        self._store = store

    @classmethod
    def create(cls, project_name, project_dir, db_uri, store_cls=GitRevisionStore):
        """Initialize the backing repository if absent, then open it."""
        repo_path = Path(project_dir) / project_name
        store_cls.init(repo_path)
        return cls.open(project_dir, project_name, db_uri, store_cls=store_cls)

    @classmethod
    def open(cls, project_dir, project_name, db_uri, store_cls=GitRevisionStore):
        """Bind to an existing repository. Raises RepositoryNotFound if absent.

        db_uri is stored as given; keeping it in line with the registry is up
        to the caller.
        """
        repo_path = Path(project_dir) / project_name
        store = store_cls(repo_path)
        return cls(project_name, project_dir, db_uri, store)

    @property
    def name(self):
        return self._name

    @property
    def db_uri(self):
        return self._db_uri

    @property
    def project_dir(self):
        return self._project_dir

    @property
    def repo_path(self):
        return self._repo_path

    @property
    def sql_path(self):
        return self._sql_path

    def absolute_sql_path(self):
        return self._repo_path / self._sql_path

    def commit_iterator(self):
        """Revisions newest first. Call again to restart."""
        return self._store.iter_revisions()

    def has_revisions(self):
        return next(self._store.iter_revisions(), None) is not None

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def commit_dump(self, message, dump):
        """Write the dump and record it as a new revision. Returns the revision ID.

        If the write fails nothing is committed. If the commit fails the file
        is left updated; calling again is safe since the write is a full
        overwrite.
        """
        logger.debug("Writing dump for %s (%d bytes)", self._name, len(dump))
        self.sync_dump(dump)

        logger.debug("Committing %s in %s", self._sql_path, self._repo_path)
        return self._store.commit_file(self._sql_path, message)

    def sync_dump(self, dump):
        with open(self.absolute_sql_path(), "wb") as f:
            f.write(dump)
            f.flush()
            os.fsync(f.fileno())

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def get_dump_at_commit(self, commit_hash):
        return self._store.get_file_content_at(self._sql_path, commit_hash)

    def get_latest_dump(self):
        last_commit_hash = self._store.last_revision_id()
        return self.get_dump_at_commit(last_commit_hash)
