"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.table import Table

from adapters.api import AuthApi
from adapters.http_client import ApiClient, build_async_client
from cli.common import console
from cli.ui_components import print_banner
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.domain.language import Language
from core.errors import ApiError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")


async def _check_http(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(settings.api_base_url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or type(exc).__name__


async def _check_session(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with ApiClient(settings) as client:
            user = await AuthApi(client).me()
        return True, f"{user.email} ({', '.join(user.roles) or 'sin roles'})"
    except ApiError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    print_banner(console)

    table = Table(title="AiutoX Console Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("API root", "OK", settings.api_root)
    table.add_row("User config", "OK" if get_user_env_file().exists() else "MISSING", str(get_user_env_file()))
    table.add_row("Language", "OK", settings.default_language.label())

    # Connectivity (best-effort)
    ok_http, detail_http = asyncio.run(_check_http(settings))
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    # Session
    if not settings.access_token:
        table.add_row("Session", "MISSING", "Run `aiutox auth login`")
        ok_session = False
    elif ok_http:
        ok_session, detail_session = asyncio.run(_check_session(settings))
        table.add_row("Session", "OK" if ok_session else "FAIL", detail_session)
    else:
        ok_session = False
        table.add_row("Session", "SKIPPED", "Backend unreachable")

    console.print(table)

    if not ok_http:
        console.print(
            "\n[yellow]Note:[/yellow] Check `AIUTOX_API_BASE_URL` or run `aiutox doctor setup`."
        )
    if not (ok_http and ok_session):
        raise typer.Exit(code=1)


@app.command()
def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    settings = AppSettings()
    base_url = typer.prompt("API base URL", default=settings.api_base_url, show_default=True).strip()
    language = typer.prompt(
        "Language (es/en)",
        default=settings.default_language.value,
        show_default=True,
    ).strip().lower()
    page_size = typer.prompt("Default page size", default=settings.default_page_size, type=int)

    if not base_url.startswith(("http://", "https://")):
        raise typer.BadParameter("base_url must start with http:// or https://")
    if language not in {item.value for item in Language}:
        raise typer.BadParameter("language must be 'es' or 'en'")

    env_path = write_user_env_vars(
        {
            "AIUTOX_API_BASE_URL": base_url.rstrip("/"),
            "AIUTOX_DEFAULT_LANGUAGE": language,
            "AIUTOX_DEFAULT_PAGE_SIZE": str(page_size),
        }
    )

    console.print(f"[green]Saved config to:[/green] {env_path}")
