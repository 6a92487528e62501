from __future__ import annotations

import logging

import typer

from nvs_core.config import NvsConfig, load_config
from nvs_core.errors import NvsError
from nvs_core.install import Installer, InstallEvent, InstallOutcome, VersionStore
from nvs_core.install.events import EventKind
from nvs_core.releases import NIGHTLY, normalize_version

app = typer.Typer(help="Neovim version manager", no_args_is_help=True, add_completion=False)


class _ConsoleObserver:
    """Prints phase lines and a single rewritten percentage line."""

    def __init__(self) -> None:
        self._last_percent: int | None = None

    def on_event(self, event: InstallEvent) -> None:
        if event.kind is EventKind.PHASE:
            if self._last_percent is not None:
                typer.echo("")
                self._last_percent = None
            typer.echo(event.phase)
            return
        if event.percent is None or event.percent == self._last_percent:
            return
        self._last_percent = event.percent
        typer.echo(f"\r  {event.percent:3d}%", nl=False)


def _fail(command: str, exc: NvsError) -> typer.Exit:
    typer.echo(f"[nvs:{command}] {exc.kind}: {exc}", err=True)
    return typer.Exit(1)


def _config(command: str) -> NvsConfig:
    try:
        return load_config()
    except NvsError as exc:
        raise _fail(command, exc) from exc


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("install")
def install(
    alias: str = typer.Argument(..., help="stable, nightly, or a version tag such as 0.9.5"),
    force: bool = typer.Option(False, "--force", help="Reinstall even if already installed"),
) -> None:
    """Install a Neovim release."""
    config = _config("install")
    installer = Installer.from_config(config)
    try:
        result = installer.install_version(
            alias,
            config.versions_dir,
            config.cache_file,
            observer=_ConsoleObserver(),
            force=force,
        )
    except NvsError as exc:
        raise _fail("install", exc) from exc

    if result.outcome is InstallOutcome.ALREADY_INSTALLED:
        typer.echo(f"{result.install_name} is already installed ({result.release_identifier})")
        return
    typer.echo(f"Installed {result.install_name} ({result.release_identifier}) into {result.path}")


@app.command("list-remote")
def list_remote(
    force: bool = typer.Option(False, "--force", help="Bypass the release cache"),
) -> None:
    """List installable releases."""
    config = _config("list-remote")
    installer = Installer.from_config(config)
    store = VersionStore(config.versions_dir)
    try:
        releases = installer.resolver.list_releases(force_refresh=force)
    except NvsError as exc:
        raise _fail("list-remote", exc) from exc

    for release in releases:
        label = release.tag_name
        if release.prerelease and release.tag_name != NIGHTLY:
            label = f"{label} (prerelease)"
        if store.is_installed(normalize_version(release.tag_name)):
            label = f"{label} (installed)"
        typer.echo(label)


@app.command("list-installed")
def list_installed() -> None:
    """List installed versions."""
    config = _config("list-installed")
    installed = VersionStore(config.versions_dir).list_installed()
    if not installed:
        typer.echo("No versions installed")
        return
    for item in installed:
        typer.echo(f"{item.name}\t{item.identifier}")


@app.command("uninstall")
def uninstall(name: str = typer.Argument(..., help="Installed version name")) -> None:
    """Remove an installed version."""
    config = _config("uninstall")
    install_name = normalize_version(name)
    try:
        VersionStore(config.versions_dir).uninstall(install_name)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except NvsError as exc:
        raise _fail("uninstall", exc) from exc
    typer.echo(f"Uninstalled {install_name}")


@app.command("upgrade-check")
def upgrade_check(alias: str = typer.Argument(..., help="stable or nightly")) -> None:
    """Report whether a newer stable or nightly build is published."""
    config = _config("upgrade-check")
    installer = Installer.from_config(config)
    try:
        info = installer.check_upgrade(alias, config.versions_dir, config.cache_file)
    except NvsError as exc:
        raise _fail("upgrade-check", exc) from exc
    if info.has_update:
        typer.echo(f"{alias}: update available ({info.installed} -> {info.latest})")
    else:
        typer.echo(f"{alias}: up to date ({info.installed})")


@app.command("upgrade")
def upgrade(alias: str = typer.Argument(..., help="stable or nightly")) -> None:
    """Reinstall stable or nightly when a newer build is published."""
    config = _config("upgrade")
    installer = Installer.from_config(config)
    try:
        info, result = installer.upgrade(
            alias,
            config.versions_dir,
            config.cache_file,
            observer=_ConsoleObserver(),
        )
    except NvsError as exc:
        raise _fail("upgrade", exc) from exc
    if result is None:
        typer.echo(f"{alias}: up to date ({info.installed})")
        return
    typer.echo(f"{alias}: upgraded {info.installed} -> {result.release_identifier}")


def main() -> int:
    app()
    return 0
