"""Command line surface for the soft token."""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer

from yksoft_core.config import YKSoftConfig
from yksoft_core.enrollment import EnrollmentManager, SecretEncoding
from yksoft_core.errors import YKSoftError
from yksoft_core.logging import setup_logging
from yksoft_core.session import TokenSession
from yksoft_core.store import SecretStore


app = typer.Typer(help="Software HOTP token emulator.", no_args_is_help=True)


@contextmanager
def _errors():
    try:
        yield
    except (YKSoftError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)


def _config(ctx: typer.Context) -> YKSoftConfig:
    return ctx.obj


def _store(ctx: typer.Context) -> SecretStore:
    return SecretStore(_config(ctx).token_dir)


def _fmt_time(value) -> str:
    return value.isoformat(timespec="seconds") if value else "-"


@app.callback()
def main(
    ctx: typer.Context,
    directory: Optional[Path] = typer.Option(None, "--dir", "-d", help="Token directory (default ~/.yksoft)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
):
    with _errors():
        config = YKSoftConfig()
        if directory is not None:
            config.token_dir = directory.expanduser()
        config.validate()
    setup_logging(level="DEBUG" if verbose else config.log_level, json_output=config.json_logs)
    ctx.obj = config


@app.command("new", help="Create a token and print its registration info once.")
def cmd_new(
    ctx: typer.Context,
    label: str = typer.Argument("default", help="Display name for the token."),
    digits: Optional[int] = typer.Option(None, "--digits", help="Passcode width (6, 7 or 8)."),
    algorithm: Optional[str] = typer.Option(None, "--algorithm", help="SHA1, SHA256 or SHA512."),
    encoding: SecretEncoding = typer.Option(SecretEncoding.BASE32, "--encoding", help="Secret encoding."),
    issuer: str = typer.Option("YKSoft", "--issuer", help="Issuer for the otpauth URI."),
    as_json: bool = typer.Option(False, "--json", help="Print the payload as JSON."),
):
    with _errors():
        manager = EnrollmentManager(_store(ctx), _config(ctx))
        payload = manager.enroll(label, digits=digits, algorithm=algorithm, encoding=encoding)

    if as_json:
        typer.echo(payload.to_json())
        return
    typer.echo(f"Token created: {payload.identifier} ({payload.label})")
    typer.echo("Registration info (shown once, store it with the server now):")
    typer.echo(payload.as_text())
    typer.echo(payload.otpauth_uri(issuer))


@app.command("list", help="List tokens in the store.")
def cmd_list(ctx: typer.Context):
    with _errors():
        tokens = _store(ctx).list()
    if not tokens:
        typer.echo("No tokens found.")
        return
    for info in tokens:
        if info.corrupt:
            typer.echo(f"{info.identifier}  [corrupt]")
            continue
        typer.echo(f"{info.identifier}  {info.label}  counter={info.moving_factor}  digits={info.digits}")


@app.command("code", help="Generate the next passcode.")
def cmd_code(ctx: typer.Context, identifier: str):
    with _errors():
        code = TokenSession(_store(ctx)).next_code(identifier)
    typer.echo(code)


@app.command("info", help="Show token metadata (never the secret).")
def cmd_info(ctx: typer.Context, identifier: str):
    with _errors():
        info = _store(ctx).load(identifier).info
    typer.echo(f"identifier: {info.identifier}")
    typer.echo(f"label: {info.label}")
    typer.echo(f"counter: {info.moving_factor}")
    typer.echo(f"digits: {info.digits}")
    typer.echo(f"algorithm: {info.algorithm}")
    typer.echo(f"created: {_fmt_time(info.created_at)}")
    typer.echo(f"last used: {_fmt_time(info.last_used_at)}")


@app.command("label", help="Change a token's display name.")
def cmd_label(ctx: typer.Context, identifier: str, new_label: str):
    with _errors():
        record = _store(ctx).relabel(identifier, new_label)
    typer.echo(f"{record.identifier} relabeled to {record.label}")


@app.command("delete", help="Delete a token. This cannot be undone.")
def cmd_delete(
    ctx: typer.Context,
    identifier: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
):
    if not yes:
        typer.confirm(f"Delete token '{identifier}'? This cannot be undone!", abort=True)
    with _errors():
        _store(ctx).delete(identifier)
    typer.echo(f"Deleted {identifier}")


if __name__ == "__main__":
    app()
