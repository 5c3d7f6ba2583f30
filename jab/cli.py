import functools
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from jab import __version__
from jab.config import JabConfig, ProjectConfig, get_jab_dir, get_projects_dir, init_jab_dir
from jab.credentials import load_jab_credentials, save_jab_credential
from jab.dump import dump_database, restore_database
from jab.errors import JabError
from jab.log import read_logs, setup_logging, write_log
from jab.project import Project


def _handle_errors(fn):
    """Show jab and filesystem errors as one red line and exit 1."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (JabError, OSError) as e:
            Console(stderr=True).print(f"[red]{e}[/red]", highlight=False)
            raise SystemExit(1)

    return wrapper


def _validate_project_name(ctx, param, value):
    """Project names become a directory under <jab_dir>/projects."""
    if not value or value in (".", "..") or "/" in value or "\\" in value:
        raise click.BadParameter(f"{value!r} must be a plain name, not a path.")
    return value


def _load_registry(jab_dir):
    if not JabConfig.get_path(jab_dir).exists():
        click.echo("No jab config found. Run 'jab init' first.", err=True)
        raise SystemExit(1)
    return JabConfig.read(jab_dir)


def _open_project(jab_dir, name):
    project_config = _load_registry(jab_dir).project_config(name)
    return Project.open(get_projects_dir(jab_dir), project_config.name, project_config.db_uri)


@click.group()
@click.version_option(version=__version__)
@click.option("--jab-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory holding the config and projects. Defaults to $JAB_HOME or ~/.jab.")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx, jab_dir, verbose):
    """jab: version-controlled database snapshots."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["jab_dir"] = jab_dir or get_jab_dir()
    load_jab_credentials(ctx.obj["jab_dir"])


@main.command()
@click.pass_obj
@_handle_errors
def init(obj):
    """Create the jab directory with an empty project registry."""
    config_path = JabConfig.get_path(obj["jab_dir"])
    if config_path.exists():
        click.echo(f"{config_path} already exists.")
        return
    init_jab_dir(obj["jab_dir"])
    click.echo(f"Created {config_path}")


@main.command()
@click.argument("key")
@click.argument("value")
@click.pass_obj
@_handle_errors
def auth(obj, key, value):
    """Save a credential for the dump tools, e.g. PGPASSWORD.

    Example: jab auth PGPASSWORD s3cret
    """
    save_jab_credential(obj["jab_dir"], key, value)
    click.echo(f"Saved {key} to {Path(obj['jab_dir']) / 'credentials'}")


# ── Projects ──────────────────────────────────────────────────────────────────

@main.group()
def project():
    """Register and manage projects."""


@project.command("create")
@click.argument("name", callback=_validate_project_name)
@click.option("--db-uri", required=True, help="Connection string, e.g. postgres://localhost/shop")
@click.pass_obj
@_handle_errors
def project_create(obj, name, db_uri):
    """Register a project and create its repository."""
    jab_dir = obj["jab_dir"]
    registry = _load_registry(jab_dir)
    registry.register_project_config(ProjectConfig(name=name, db_uri=db_uri))
    created = Project.create(name, get_projects_dir(jab_dir), db_uri)
    JabConfig.persist(registry, jab_dir)
    write_log(jab_dir, {"event": "create", "project": name})
    click.echo(f"Created project {name} at {created.repo_path}")


@project.command("list")
@click.pass_obj
@_handle_errors
def project_list(obj):
    """List registered projects."""
    console = Console()
    registry = _load_registry(obj["jab_dir"])

    if not registry.projects:
        console.print("[dim]No projects registered.[/dim]")
        return

    table = Table(title="Projects")
    table.add_column("Name", style="bold cyan")
    table.add_column("Database", style="dim")
    for name in sorted(registry.projects):
        table.add_row(name, registry.projects[name].db_uri)
    console.print(table)


@project.command("remove")
@click.argument("name")
@click.pass_obj
@_handle_errors
def project_remove(obj, name):
    """Unregister a project. Its repository is left on disk."""
    jab_dir = obj["jab_dir"]
    registry = _load_registry(jab_dir)
    registry.remove_project_config(name)
    JabConfig.persist(registry, jab_dir)
    write_log(jab_dir, {"event": "remove", "project": name})
    click.echo(f"Removed {name}. Repository kept at {get_projects_dir(jab_dir) / name}")


# ── Snapshots ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("name")
@click.option("-m", "--message", default=None, help="Revision message.")
@click.pass_obj
@_handle_errors
def save(obj, name, message):
    """Dump the project's database and commit it as a new revision."""
    jab_dir = obj["jab_dir"]
    proj = _open_project(jab_dir, name)
    message = message or f"Snapshot {datetime.now():%Y-%m-%d %H:%M:%S}"

    dump = dump_database(proj.db_uri)
    revision_id = proj.commit_dump(message, dump)

    write_log(jab_dir, {"event": "save", "project": name, "revision": revision_id, "message": message})
    click.echo(revision_id)


@main.command("log")
@click.argument("name")
@click.option("-n", "--limit", default=20, help="Number of revisions to show.")
@click.pass_obj
@_handle_errors
def log_cmd(obj, name, limit):
    """Show a project's revisions, newest first."""
    console = Console()
    proj = _open_project(obj["jab_dir"], name)

    table = Table(title=f"{name} revisions")
    table.add_column("Revision", style="bold cyan")
    table.add_column("Date", style="dim")
    table.add_column("Message", max_width=60)

    count = 0
    for revision in proj.commit_iterator():
        if count >= limit:
            break
        table.add_row(revision.short_id, revision.timestamp.strftime("%Y-%m-%d %H:%M"), revision.message)
        count += 1

    if not count:
        console.print("[dim]No revisions yet. Run 'jab save' first.[/dim]")
        return
    console.print(table)


@main.command()
@click.argument("name")
@click.option("-r", "--revision", default=None, help="Revision ID. Defaults to the latest.")
@click.pass_obj
@_handle_errors
def show(obj, name, revision):
    """Write a stored dump to stdout."""
    proj = _open_project(obj["jab_dir"], name)
    dump = proj.get_dump_at_commit(revision) if revision else proj.get_latest_dump()
    click.get_binary_stream("stdout").write(dump)


@main.command()
@click.argument("name")
@click.option("-r", "--revision", default=None, help="Revision ID. Defaults to the latest.")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt.")
@click.pass_obj
@_handle_errors
def restore(obj, name, revision, yes):
    """Load a stored dump back into the project's database."""
    jab_dir = obj["jab_dir"]
    proj = _open_project(jab_dir, name)
    dump = proj.get_dump_at_commit(revision) if revision else proj.get_latest_dump()
    label = revision or "latest"

    if not yes and not click.confirm(f"Restore {label} into {proj.db_uri}?", default=False):
        click.echo("Cancelled.")
        return

    restore_database(proj.db_uri, dump)
    write_log(jab_dir, {"event": "restore", "project": name, "revision": label})
    click.echo(f"Restored {name} to {label}.")


@main.command()
@click.option("-n", "--limit", default=20, help="Number of entries to show.")
@click.option("-p", "--project", "project_name", default=None, help="Only this project.")
@click.pass_obj
@_handle_errors
def history(obj, limit, project_name):
    """Show the audit log of creates, saves and restores."""
    console = Console()
    entries = read_logs(obj["jab_dir"], project_name)

    if not entries:
        console.print("[dim]No history yet.[/dim]")
        return

    table = Table(title="History")
    table.add_column("Time", style="dim")
    table.add_column("Event", style="bold")
    table.add_column("Project", style="cyan")
    table.add_column("Revision")

    for entry in entries[-limit:]:
        ts = entry.get("timestamp", "")
        if ts:
            try:
                ts = datetime.fromisoformat(ts).strftime("%m-%d %H:%M")
            except ValueError:
                pass
        table.add_row(ts, entry.get("event", ""), entry.get("project", ""), entry.get("revision", "")[:8])

    console.print(table)
