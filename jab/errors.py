"""Error types raised by jab.

Filesystem failures are not wrapped: OSError propagates unchanged so callers
can tell "file missing" (OSError) apart from "file corrupt" (ConfigParseError).
"""


class JabError(RuntimeError):
    """Base exception for all jab failures."""


# ── Registry ──────────────────────────────────────────────────────────────────

class ConfigLookupError(JabError):
    """A named project is not present in the registry."""


class ProjectConfigNotFound(ConfigLookupError):

    def __init__(self, name):
        self.name = name
        super().__init__(
            f"Project config {name} does not exist, please check config or create it"
        )


class ConfigParseError(JabError):
    """The persisted registry exists but is not well-formed."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid jab config at {path}: {reason}")


# ── Revision store ────────────────────────────────────────────────────────────

class RevisionStoreError(JabError):
    """A failure that originated in the revision backend."""

    def __init__(self, message, path=None):
        self.path = path
        super().__init__(message)


class RepositoryNotFound(RevisionStoreError):

    def __init__(self, path):
        super().__init__(f"No repository at {path}. Create the project first.", path)


class RevisionNotFound(RevisionStoreError):

    def __init__(self, revision_id, path=None):
        self.revision_id = revision_id
        super().__init__(f"Revision {revision_id} not found", path)


class PathNotTracked(RevisionStoreError):

    def __init__(self, file_path, revision_id, path=None):
        self.file_path = file_path
        self.revision_id = revision_id
        super().__init__(f"{file_path} is not tracked at revision {revision_id}", path)


class NoRevisions(RevisionStoreError):

    def __init__(self, path=None):
        super().__init__(f"No revisions in {path}. Save a dump first.", path)


# ── Dump tools ────────────────────────────────────────────────────────────────

class DumpToolError(JabError):
    """An external dump/restore tool failed or is not installed."""

    def __init__(self, command, returncode=None, stderr=""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            message = f"{command[0]} not found. Install it and make sure it is on PATH."
        else:
            detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
            message = f"{command[0]} exited with code {returncode}: {detail}"
        super().__init__(message)


class UnsupportedDatabase(JabError):

    def __init__(self, db_uri):
        self.db_uri = db_uri
        super().__init__(
            f"Unsupported database URI: {db_uri!r}. "
            "Use postgres://, mysql:// or sqlite:///."
        )
