"""Command line interface for the Docvault project."""

from __future__ import annotations

import contextlib
import difflib
import shlex
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from docvault.config import ConfigError, ConfigManager, VaultConfig, resolve_with_precedence
from docvault.config.resolver import assign_path
from docvault.gates import AllowAllGate, AuthorizationGate, ConfirmationGate, LaunchViewer, Viewer
from docvault.ingestion import ImportSource, photo_source, scan_source, stage_file
from docvault.lifecycle import DocumentManager
from docvault.logging_config import configure_logging
from docvault.organization import NamingResolver
from docvault.state import CatalogError, CollectionName, Document
from docvault.storage import FileStore, StorageError

console = Console()


@dataclass(slots=True)
class VaultSession:
    """Objects shared by the commands of one CLI invocation or shell session.

    Attributes:
        config: Effective configuration.
        manager: Lifecycle manager for the vault.
        gate: Authorization gate consulted before sensitive commands.
        viewer: Viewer used by ``open``.
    """

    config: VaultConfig
    manager: DocumentManager
    gate: AuthorizationGate
    viewer: Viewer


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)

    raise click.ClickException(message) from original


@contextlib.contextmanager
def _vault_errors(json_output: bool = False) -> Iterator[None]:
    """Translate vault exceptions raised inside the block into CLI errors."""
    try:
        yield
    except CatalogError as exc:
        _handle_cli_error(str(exc), code="catalog_error", json_output=json_output, original=exc)
    except StorageError as exc:
        _handle_cli_error(
            f"Storage failure: {exc}",
            code=f"storage_{exc.kind.value.replace('-', '_')}",
            json_output=json_output,
            original=exc,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except OSError as exc:
        _handle_cli_error(str(exc), code="os_error", json_output=json_output, original=exc)


def _session(ctx: click.Context, *, json_output: bool = False) -> VaultSession:
    """Return the session for this invocation, creating it on first use.

    Args:
        ctx: Current Click context.
        json_output: Whether failures should be reported as JSON payloads.

    Returns:
        VaultSession: Shared configuration, manager, gate, and viewer.
    """

    obj = ctx.ensure_object(dict)
    session = obj.get("session")
    if session is not None:
        return session

    overrides = {"storage.root": obj["vault"]} if obj.get("vault") else None
    with _vault_errors(json_output):
        config = ConfigManager().load(cli_overrides=overrides)
        configure_logging(config.logging)
        manager = DocumentManager.from_config(config)

    if obj.get("assume_yes") or not config.cli.confirm_sensitive:
        gate: AuthorizationGate = AllowAllGate()
    else:
        gate = ConfirmationGate()

    session = VaultSession(config=config, manager=manager, gate=gate, viewer=LaunchViewer())
    obj["session"] = session
    ctx.find_root().call_on_close(manager.close)
    return session


def _authorize(session: VaultSession, reason: str) -> None:
    """Ask the session's gate for permission, aborting the command on denial."""
    if not session.gate.authorize(reason):
        raise click.ClickException(f"Not authorized: {reason}.")


def _find_document(
    manager: DocumentManager,
    reference: str,
    collection: CollectionName = "active",
) -> Document:
    """Resolve a display name, id, or unique id prefix to a document.

    Raises:
        click.ClickException: If nothing or more than one document matches.
    """

    documents = manager.documents if collection == "active" else manager.trash
    exact = [document for document in documents if document.display_name == reference]
    if len(exact) == 1:
        return exact[0]

    folded = reference.casefold()
    candidates = [document for document in documents if document.display_name.casefold() == folded]
    if not candidates:
        candidates = [document for document in documents if document.id.startswith(reference)]

    where = "in the vault" if collection == "active" else "in the trash"
    if not candidates:
        raise click.ClickException(f"No document named '{reference}' {where}.")
    if len(candidates) > 1:
        raise click.ClickException(f"'{reference}' matches several documents {where}; use the id.")
    return candidates[0]


def _document_table(documents: list[Document], *, title: str) -> Table:
    """Render documents as a Rich table."""
    table = Table(title=title)
    table.add_column("Name", overflow="fold")
    table.add_column("Category")
    table.add_column("Type")
    table.add_column("Locked", justify="center")
    table.add_column("Added")
    table.add_column("Id", style="dim")
    for document in documents:
        table.add_row(
            document.display_name,
            document.category.value,
            document.type_hint.value,
            "yes" if document.is_protected else "",
            document.added_at.astimezone().strftime("%Y-%m-%d %H:%M"),
            document.id[:8],
        )
    return table


def _emit_documents(documents: list[Document], *, title: str, json_output: bool) -> None:
    if json_output:
        console.print_json(data={"documents": [doc.model_dump(mode="json") for doc in documents]})
        return
    if not documents:
        console.print(f"[yellow]{title}: no documents.[/yellow]")
        return
    console.print(_document_table(documents, title=title))


def _session_only_note(ctx: click.Context) -> None:
    if not ctx.ensure_object(dict).get("interactive"):
        console.print(
            "[yellow]The trash only lasts for this session; "
            "use `docvault shell` to restore or purge later.[/yellow]"
        )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="docvault")
@click.option(
    "--vault",
    "vault_path",
    type=click.Path(file_okay=False, path_type=str),
    help="Vault directory (overrides storage.root).",
)
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Skip confirmation prompts.")
@click.pass_context
def cli(ctx: click.Context, vault_path: Optional[str], assume_yes: bool) -> None:
    """Docvault keeps personal documents in a local vault.

    Returns:
        None: This function is invoked for its side effects.
    """
    obj = ctx.ensure_object(dict)
    if vault_path is not None:
        obj["vault"] = vault_path
    if assume_yes:
        obj["assume_yes"] = True


@cli.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--name", type=str, help="Name to store the document under (extension is kept).")
@click.option(
    "--kind",
    type=click.Choice(["file", "photo", "scan"]),
    default="file",
    show_default=True,
    help="Import a picked file, or a JPEG from a photo library or camera scan.",
)
@click.pass_context
def import_command(ctx: click.Context, file: Path, name: Optional[str], kind: str) -> None:
    """Copy FILE into the vault; the original is left untouched."""
    session = _session(ctx)
    staging_dir = session.config.storage.staging_path

    with _vault_errors():
        source: ImportSource
        if kind == "photo":
            source = photo_source(file.read_bytes(), staging_dir=staging_dir)
        elif kind == "scan":
            source = scan_source(file.read_bytes(), staging_dir=staging_dir)
        else:
            source = stage_file(file, staging_dir=staging_dir)
        try:
            document = session.manager.import_document(source, name)
        except Exception:
            source.path.unlink(missing_ok=True)
            raise

    console.print(
        f"[green]Imported {document.display_name} ({document.category.value}).[/green]"
    )


@cli.command("ls")
@click.option("--json", "json_output", is_flag=True, help="Emit documents as JSON.")
@click.pass_context
def list_command(ctx: click.Context, json_output: bool) -> None:
    """List the documents in the vault, newest first."""
    session = _session(ctx, json_output=json_output)
    _emit_documents(session.manager.documents, title="Documents", json_output=json_output)


@cli.command()
@click.argument("query")
@click.option("--json", "json_output", is_flag=True, help="Emit matches as JSON.")
@click.pass_context
def search(ctx: click.Context, query: str, json_output: bool) -> None:
    """List documents whose name contains QUERY (case-insensitive)."""
    session = _session(ctx, json_output=json_output)
    _emit_documents(
        session.manager.search(query), title=f"Matches for '{query}'", json_output=json_output
    )


@cli.command()
@click.argument("document")
@click.argument("new_name")
@click.pass_context
def rename(ctx: click.Context, document: str, new_name: str) -> None:
    """Rename DOCUMENT to NEW_NAME, keeping its extension."""
    session = _session(ctx)
    target = _find_document(session.manager, document)
    _authorize(session, f"Authenticate to rename {target.display_name}")
    with _vault_errors():
        renamed = session.manager.rename_document(target.id, new_name)
    console.print(f"[green]Renamed {target.display_name} to {renamed.display_name}.[/green]")


@cli.command()
@click.argument("document")
@click.pass_context
def lock(ctx: click.Context, document: str) -> None:
    """Protect DOCUMENT so its content is inaccessible until unlocked."""
    session = _session(ctx)
    target = _find_document(session.manager, document)
    _authorize(session, f"Authenticate to lock {target.display_name}")
    with _vault_errors():
        session.manager.lock_document(target.id)
    console.print(f"[green]Locked {target.display_name}.[/green]")


@cli.command()
@click.argument("document")
@click.pass_context
def unlock(ctx: click.Context, document: str) -> None:
    """Remove the protection from DOCUMENT."""
    session = _session(ctx)
    target = _find_document(session.manager, document)
    _authorize(session, f"Authenticate to unlock {target.display_name}")
    with _vault_errors():
        session.manager.unlock_document(target.id)
    console.print(f"[green]Unlocked {target.display_name}.[/green]")


@cli.command("open")
@click.argument("document")
@click.option(
    "--no-wait",
    is_flag=True,
    help="Return immediately instead of waiting for a locked document to re-lock.",
)
@click.pass_context
def open_command(ctx: click.Context, document: str, no_wait: bool) -> None:
    """Open DOCUMENT; locked documents are unlocked temporarily."""
    session = _session(ctx)
    manager = session.manager
    target = _find_document(manager, document)

    def _present(unlocked: Document) -> None:
        session.viewer.present(unlocked.location, unlocked.type_hint)

    if not target.is_protected:
        _present(target)
        return

    _authorize(session, f"Authenticate to view {target.display_name}")
    with _vault_errors():
        manager.temporary_unlock(target.id, _present)

    delay = session.config.protection.relock_delay_seconds
    console.print(f"[cyan]{target.display_name} re-locks in {delay:g} seconds.[/cyan]")
    if no_wait:
        return
    try:
        manager.wait_for_relock(target.id)
    except KeyboardInterrupt:
        manager.close()
    console.print(f"[green]{target.display_name} is locked again.[/green]")


@cli.command()
@click.argument("document")
@click.argument(
    "destination",
    type=click.Path(file_okay=False, path_type=Path),
)
@click.pass_context
def share(ctx: click.Context, document: str, destination: Path) -> None:
    """Copy DOCUMENT into the DESTINATION directory.

    Locked documents are unlocked just long enough to copy them; the copy is
    written with normal permissions.
    """
    session = _session(ctx)
    manager = session.manager
    target = _find_document(manager, document)
    _authorize(session, f"Authenticate to share {target.display_name}")

    storage = session.config.storage
    store = FileStore(
        protected_mode=storage.protected_mode,
        unprotected_mode=storage.unprotected_mode,
    )
    exported: list[Path] = []

    def _export(unlocked: Document) -> None:
        store.ensure_directory(destination)
        final_name = NamingResolver(store).resolve(destination, unlocked.display_name)
        store.copy(unlocked.location, destination / final_name)
        store.set_protected(destination / final_name, False)
        exported.append(destination / final_name)

    with _vault_errors():
        if not target.is_protected:
            _export(target)
        else:
            try:
                manager.temporary_unlock(target.id, _export)
            finally:
                manager.lock_document(target.id)

    console.print(f"[green]Shared {target.display_name} as {exported[0]}.[/green]")


@cli.command()
@click.argument("document")
@click.pass_context
def trash(ctx: click.Context, document: str) -> None:
    """Move DOCUMENT to the trash."""
    session = _session(ctx)
    target = _find_document(session.manager, document)
    _authorize(session, f"Authenticate to move {target.display_name} to Trash")
    with _vault_errors():
        session.manager.move_to_trash(target.id)
    console.print(f"[green]Moved {target.display_name} to the trash.[/green]")
    _session_only_note(ctx)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit trashed documents as JSON.")
@click.pass_context
def trashed(ctx: click.Context, json_output: bool) -> None:
    """List the documents in the trash."""
    session = _session(ctx, json_output=json_output)
    _authorize(session, "Authenticate to view Trash")
    _emit_documents(session.manager.trash, title="Trash", json_output=json_output)


@cli.command()
@click.argument("document")
@click.pass_context
def restore(ctx: click.Context, document: str) -> None:
    """Return DOCUMENT from the trash to the vault."""
    session = _session(ctx)
    target = _find_document(session.manager, document, "trashed")
    with _vault_errors():
        restored = session.manager.restore_from_trash(target.id)
    console.print(
        f"[green]Restored {restored.display_name} ({restored.category.value}).[/green]"
    )


@cli.command()
@click.argument("document")
@click.pass_context
def purge(ctx: click.Context, document: str) -> None:
    """Delete a trashed DOCUMENT forever."""
    session = _session(ctx)
    target = _find_document(session.manager, document, "trashed")
    _authorize(session, f"Authenticate to delete {target.display_name} forever")
    with _vault_errors():
        session.manager.permanently_delete(target.id)
    console.print(f"[green]Deleted {target.display_name} forever.[/green]")


@cli.command("rm")
@click.argument("document")
@click.pass_context
def remove_command(ctx: click.Context, document: str) -> None:
    """Delete DOCUMENT forever without keeping it in the trash."""
    session = _session(ctx)
    target = _find_document(session.manager, document)
    _authorize(session, f"Authenticate to delete {target.display_name} forever")
    with _vault_errors():
        session.manager.move_to_trash(target.id)
        session.manager.permanently_delete(target.id)
    console.print(f"[green]Deleted {target.display_name} forever.[/green]")


@cli.command()
@click.pass_context
def shell(ctx: click.Context) -> None:
    """Run commands interactively against one vault session.

    The trash and any temporary unlocks persist between commands until the
    shell exits.
    """
    obj = ctx.ensure_object(dict)
    if obj.get("interactive"):
        raise click.ClickException("Already inside a docvault shell.")
    session = _session(ctx)
    obj["interactive"] = True

    console.print(
        f"[cyan]Docvault shell for {session.manager.root}. "
        "Type 'help' for commands, 'quit' to leave.[/cyan]"
    )
    while True:
        try:
            line = console.input("docvault> ")
        except (EOFError, KeyboardInterrupt):
            break
        try:
            args = shlex.split(line)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            continue
        if not args:
            continue
        if args[0] in {"quit", "exit"}:
            break
        if args[0] == "help":
            args = ["--help"]

        try:
            cli.main(args=args, prog_name="docvault", obj=obj, standalone_mode=False)
        except click.ClickException as exc:
            exc.show()
        except click.Abort:
            console.print("[yellow]Aborted.[/yellow]")
        except SystemExit:
            continue


@cli.group()
def config() -> None:
    """Manage Docvault configuration files and overrides.

    Returns:
        None: This function is invoked for its side effects.
    """


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    with _vault_errors():
        loaded = ConfigManager().load(include_env=not no_env)

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


def _store_config(manager: ConfigManager, data: dict[str, Any]) -> None:
    """Validate ``data`` as file overrides and write it, showing a diff.

    Raises:
        click.ClickException: If the values do not form a valid configuration.
    """
    before = manager.read_text().splitlines()
    with _vault_errors():
        resolve_with_precedence(defaults=VaultConfig(), file_overrides=data)
        manager.save(data)
    diff = difflib.unified_diff(
        before,
        manager.read_text().splitlines(),
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML literal to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist VALUE at the dotted KEY, e.g. ``protection.relock_delay_seconds``."""
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'storage.root'.")
    try:
        parsed_value: Any = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    manager = ConfigManager()
    with _vault_errors():
        manager.ensure_exists()
        current = manager.load_file_overrides()
        updated = deepcopy(current)
        assign_path(updated, segments, parsed_value)

    if updated == current:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    _store_config(manager, updated)
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an editor and save it if it validates."""
    manager = ConfigManager()
    with _vault_errors():
        manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    _store_config(manager, parsed)
    console.print("[green]Configuration updated.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point.

    Returns:
        None: This function is invoked for its side effects.
    """
    cli()


if __name__ == "__main__":
    main()
