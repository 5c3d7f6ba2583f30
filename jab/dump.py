"""Dump and restore databases with their own command-line tools.

The dump is opaque to jab: whatever bytes the tool writes to stdout are what
gets committed, and restoring pipes the same bytes back into the client.

    postgres://, postgresql://  pg_dump / psql
    mysql://                    mysqldump / mysql (password via MYSQL_PWD)
    sqlite:///path              sqlite3 .dump / sqlite3
"""

import logging
import os
import subprocess
from urllib.parse import unquote, urlparse

from jab.errors import DumpToolError, UnsupportedDatabase

logger = logging.getLogger(__name__)


def _mysql_args(parsed):
    args = []
    if parsed.hostname:
        args += ["--host", parsed.hostname]
    if parsed.port:
        args += ["--port", str(parsed.port)]
    if parsed.username:
        args += ["--user", unquote(parsed.username)]
    return args


def _mysql_env(parsed):
    env = dict(os.environ)
    if parsed.password:
        env["MYSQL_PWD"] = unquote(parsed.password)
    return env


def _sqlite_path(db_uri):
    # sqlite:///relative.db and sqlite:////abs/path.db
    return db_uri[len("sqlite:///"):]


def dump_command(db_uri):
    """Return (argv, env) for dumping db_uri to stdout."""
    parsed = urlparse(db_uri)

    if parsed.scheme in ("postgres", "postgresql"):
        return ["pg_dump", "--no-owner", "--no-privileges", "--dbname", db_uri], None

    if parsed.scheme == "mysql":
        database = parsed.path.lstrip("/")
        return ["mysqldump", *_mysql_args(parsed), "--single-transaction", database], _mysql_env(parsed)

    if parsed.scheme == "sqlite" and db_uri.startswith("sqlite:///"):
        return ["sqlite3", _sqlite_path(db_uri), ".dump"], None

    raise UnsupportedDatabase(db_uri)


def restore_command(db_uri):
    """Return (argv, env) for loading a dump from stdin into db_uri."""
    parsed = urlparse(db_uri)

    if parsed.scheme in ("postgres", "postgresql"):
        return ["psql", "--quiet", "--set", "ON_ERROR_STOP=1", "--dbname", db_uri], None

    if parsed.scheme == "mysql":
        database = parsed.path.lstrip("/")
        return ["mysql", *_mysql_args(parsed), database], _mysql_env(parsed)

    if parsed.scheme == "sqlite" and db_uri.startswith("sqlite:///"):
        return ["sqlite3", _sqlite_path(db_uri)], None

    raise UnsupportedDatabase(db_uri)


def _run(cmd, env, stdin=None):
    logger.debug("Running %s", cmd[0])
    try:
        result = subprocess.run(cmd, input=stdin, capture_output=True, env=env)
    except FileNotFoundError as e:
        raise DumpToolError(cmd) from e
    if result.returncode != 0:
        raise DumpToolError(cmd, result.returncode, result.stderr.decode(errors="replace"))
    return result.stdout


def dump_database(db_uri):
    """Dump the database and return the raw bytes."""
    cmd, env = dump_command(db_uri)
    return _run(cmd, env)


def restore_database(db_uri, dump):
    """Load dump bytes into the database."""
    cmd, env = restore_command(db_uri)
    _run(cmd, env, stdin=dump)
