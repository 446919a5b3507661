"""
CLI interface for tag pages.

Usage:
    tagpage create "#project/*"
    tagpage refresh Tags/project_nested_Tags.md
    tagpage refresh-all
    tagpage show errand
"""

import json
import os
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import TagPages
from .config import CONFIG_FILENAME, VaultConfig, load_config, load_or_create_config, resolve_vault_path
from .logging_config import configure_quiet_mode, enable_debug_mode
from .types import TagGroup


# Configure quiet mode by default
# Set TAGPAGE_VERBOSE=1 to enable debug mode via environment
if os.environ.get("TAGPAGE_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"tagpage {version('tagpage')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_vault_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _vault_callback(value: Optional[Path]):
    global _vault_override
    _vault_override = value


def _get_vault_override() -> Optional[Path]:
    return _vault_override


app = typer.Typer(
    name="tagpage",
    help="Collect everything tagged with a tag onto one page.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    vault: Annotated[Optional[Path], typer.Option(
        "--vault", "-V",
        envvar="TAGPAGE_VAULT",
        help="Path to the vault (default: current directory)",
        callback=_vault_callback,
        is_eager=True,
    )] = None,
):
    """Collect everything tagged with a tag onto one page."""


# -----------------------------------------------------------------------------
# Common Arguments
# -----------------------------------------------------------------------------

TagArgument = Annotated[
    str,
    typer.Argument(help="Tag, e.g. '#project', 'project' or '#project/*' for nested tags")
]


def _get_pages() -> TagPages:
    """Open the vault, turning configuration problems into a clean error."""
    vault_path = resolve_vault_path(_get_vault_override())
    if not vault_path.is_dir():
        typer.echo(f"Error: vault not found: {vault_path}", err=True)
        raise typer.Exit(1)
    try:
        return TagPages(vault_path)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _display_path(pages: TagPages, path: Path) -> str:
    try:
        return pages.vault.identity_for(path)
    except ValueError:
        return str(path)


def _format_group(group: TagGroup) -> str:
    """Plain-text listing of grouped matches."""
    if not len(group) and not group.tagged_notes:
        return "No matches."
    lines = []
    for tag in group.variants_by_specificity():
        units = group[tag]
        lines.append(f"{tag.display} ({len(units)})")
        for unit in units:
            first, *rest = unit.text.split("\n")
            lines.append(f"  {unit.source_link} {first}")
            lines.extend(f"  {line}" for line in rest)
    if group.tagged_notes:
        lines.append(f"Frontmatter ({len(group.tagged_notes)})")
        lines.extend(f"  {link}" for link in group.tagged_notes)
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def create(tag: TagArgument):
    """
    Create the tag page for a tag, or refresh it if it exists.
    """
    with _get_pages() as pages:
        try:
            path = pages.create(tag)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
        shown = _display_path(pages, path)

    if _get_json_output():
        typer.echo(json.dumps({"path": shown}))
    else:
        typer.echo(shown)


@app.command()
def refresh(
    page: Annotated[Path, typer.Argument(help="Tag page, relative to the vault or absolute")],
):
    """
    Regenerate a tag page from the query in its frontmatter.

    Text outside the generated region is kept.
    """
    with _get_pages() as pages:
        try:
            changed = pages.refresh(page)
        except (FileNotFoundError, ValueError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)

    if _get_json_output():
        typer.echo(json.dumps({"path": str(page), "changed": changed}))
    else:
        typer.echo(f"{page}: {'updated' if changed else 'unchanged'}")


@app.command("refresh-all")
def refresh_all():
    """
    Regenerate every tag page in the vault.
    """
    with _get_pages() as pages:
        all_pages = pages.list_pages()
        changed = pages.refresh_all()
        shown = [_display_path(pages, path) for path in changed]

    if _get_json_output():
        typer.echo(json.dumps({"pages": len(all_pages), "changed": shown}))
        return
    for path in shown:
        typer.echo(f"updated {path}")
    typer.echo(f"{len(changed)} of {len(all_pages)} tag pages updated.", err=True)


@app.command()
def show(tag: TagArgument):
    """
    Print the tag page for a tag without writing it.
    """
    with _get_pages() as pages:
        try:
            text = pages.render(tag)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)

    if _get_json_output():
        typer.echo(json.dumps({"tag": tag, "content": text}))
    else:
        typer.echo(text, nl=False)


@app.command()
def scan(
    tag: TagArgument,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
    )] = False,
):
    """
    List the matches for a tag, grouped by tag variant.
    """
    with _get_pages() as pages:
        try:
            group = pages.scan(tag)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)

    if output_json or _get_json_output():
        typer.echo(json.dumps(group.to_dict(), indent=2))
    else:
        typer.echo(_format_group(group))


@app.command()
def config(
    init: Annotated[bool, typer.Option(
        "--init",
        help="Write a tagpage.toml with default settings if there is none",
    )] = False,
):
    """
    Show the vault configuration.
    """
    vault_path = resolve_vault_path(_get_vault_override())
    try:
        if init:
            cfg = load_or_create_config(vault_path)
        elif (vault_path / CONFIG_FILENAME).exists():
            cfg = load_config(vault_path)
        else:
            cfg = VaultConfig(path=vault_path, created="")
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    settings = asdict(cfg.settings)
    if _get_json_output():
        typer.echo(json.dumps({
            "vault": str(cfg.path),
            "config": str(cfg.config_path) if cfg.exists() else None,
            "settings": settings,
        }, indent=2))
        return

    typer.echo(f"vault: {cfg.path}")
    typer.echo(f"config: {cfg.config_path if cfg.exists() else '(defaults)'}")
    for key, value in settings.items():
        typer.echo(f"  {key}: {value}")


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="tagpage CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
