"""Canales de notificación: SMTP, SMS y webhook."""

from __future__ import annotations

from typing import Optional

import typer

from adapters.api import NotificationsApi
from adapters.api.notifications import sms_form_from, smtp_form_from, webhook_form_from
from adapters.http_client import ApiClient
from cli.common import console, get_state, handle_errors, print_json, run_api, toast_error, toast_success
from cli.ui_components import build_channels_table
from core.domain.models import OperationResult
from core.services.forms import SMSConfigRequest, SMTPConfigRequest, WebhookConfigRequest, validate_form

app = typer.Typer(no_args_is_help=True, help="Canales de notificación.")


def _merged(current, **changes):
    """Config actual + cambios indicados (los secretos nunca vienen del servidor)."""

    return {**current.model_dump(), **{k: v for k, v in changes.items() if v is not None}}


@app.command()
@handle_errors
def show(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Estado de los tres canales."""

    state = get_state(ctx)
    channels = run_api(state, lambda client: NotificationsApi(client).get_channels())
    if json_output:
        print_json(channels)
        return
    console.print(build_channels_table(channels))


@app.command("set-smtp")
@handle_errors
def set_smtp(
    ctx: typer.Context,
    enabled: Optional[bool] = typer.Option(None, "--enable/--disable"),
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
    user: Optional[str] = typer.Option(None, "--user"),
    password: Optional[str] = typer.Option(None, "--password", help="Se pide si no se indica.", hide_input=True),
    use_tls: Optional[bool] = typer.Option(None, "--tls/--no-tls"),
    from_email: Optional[str] = typer.Option(None, "--from-email"),
    from_name: Optional[str] = typer.Option(None, "--from-name"),
) -> None:
    """Guarda la configuración SMTP."""

    if password is None:
        password = typer.prompt("Contraseña SMTP (vacío = sin cambios)", default="", hide_input=True, show_default=False)
    state = get_state(ctx)

    async def _action(client: ApiClient):
        api = NotificationsApi(client)
        current = smtp_form_from((await api.get_channels()).smtp)
        form = validate_form(
            SMTPConfigRequest,
            **_merged(
                current,
                enabled=enabled,
                host=host,
                port=port,
                user=user,
                password=password or None,
                use_tls=use_tls,
                from_email=from_email,
                from_name=from_name,
            ),
        )
        return await api.update_smtp(form)

    run_api(state, _action)
    toast_success("Configuración SMTP guardada")


@app.command("set-sms")
@handle_errors
def set_sms(
    ctx: typer.Context,
    enabled: Optional[bool] = typer.Option(None, "--enable/--disable"),
    provider: Optional[str] = typer.Option(None, "--provider"),
    account_sid: Optional[str] = typer.Option(None, "--account-sid"),
    auth_token: Optional[str] = typer.Option(None, "--auth-token", hide_input=True),
    from_number: Optional[str] = typer.Option(None, "--from-number"),
) -> None:
    """Guarda la configuración SMS."""

    state = get_state(ctx)

    async def _action(client: ApiClient):
        api = NotificationsApi(client)
        current = sms_form_from((await api.get_channels()).sms)
        form = validate_form(
            SMSConfigRequest,
            **_merged(
                current,
                enabled=enabled,
                provider=provider,
                account_sid=account_sid,
                auth_token=auth_token,
                from_number=from_number,
            ),
        )
        return await api.update_sms(form)

    run_api(state, _action)
    toast_success("Configuración SMS guardada")


@app.command("set-webhook")
@handle_errors
def set_webhook(
    ctx: typer.Context,
    enabled: Optional[bool] = typer.Option(None, "--enable/--disable"),
    url: Optional[str] = typer.Option(None, "--url"),
    secret: Optional[str] = typer.Option(None, "--secret", hide_input=True),
    timeout: Optional[int] = typer.Option(None, "--timeout"),
) -> None:
    """Guarda la configuración del webhook."""

    state = get_state(ctx)

    async def _action(client: ApiClient):
        api = NotificationsApi(client)
        current = webhook_form_from((await api.get_channels()).webhook)
        form = validate_form(
            WebhookConfigRequest,
            **_merged(current, enabled=enabled, url=url, secret=secret, timeout=timeout),
        )
        return await api.update_webhook(form)

    run_api(state, _action)
    toast_success("Configuración de webhook guardada")


def _report_test(result: OperationResult, json_output: bool) -> None:
    if json_output:
        print_json(result)
    elif result.success:
        toast_success(result.message or "Conexión correcta")
    else:
        toast_error(result.message or "La prueba falló")
    if result.details and not json_output:
        print_json(result.details)
    if not result.success:
        raise typer.Exit(code=1)


@app.command("test-smtp")
@handle_errors
def test_smtp(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Prueba la conexión SMTP guardada."""

    state = get_state(ctx)
    _report_test(run_api(state, lambda client: NotificationsApi(client).test_smtp()), json_output)


@app.command("test-webhook")
@handle_errors
def test_webhook(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")) -> None:
    """Envía una petición de prueba al webhook guardado."""

    state = get_state(ctx)
    _report_test(run_api(state, lambda client: NotificationsApi(client).test_webhook()), json_output)
