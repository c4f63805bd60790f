import json
import sys

import click
import requests

from cli.cli_exit_codes import EXIT_CONNECTION_FAILED, EXIT_REQUEST_FAILED

DEFAULT_URL = "http://127.0.0.1:8000"


def _call(ctx, method: str, path: str, payload=None):
    url = ctx.obj["url"].rstrip("/") + path
    try:
        response = requests.request(method, url, json=payload, timeout=ctx.obj["timeout"])
    except requests.RequestException as e:
        click.echo(f"❌ Could not reach {url}: {e}", err=True)
        sys.exit(EXIT_CONNECTION_FAILED)

    try:
        body = response.json()
    except ValueError:
        body = response.text

    click.echo(json.dumps(body, indent=2) if not isinstance(body, str) else body)
    if not response.ok:
        click.echo(f"❌ {method} {path} failed with HTTP {response.status_code}", err=True)
        sys.exit(EXIT_REQUEST_FAILED)
    return body


def _parse_headers(values):
    headers = {}
    for item in values:
        if "=" not in item:
            raise click.BadParameter(f"Expected KEY=VALUE, got {item!r}", param_hint="--header")
        key, value = item.split("=", 1)
        headers[key.strip()] = value
    return headers


@click.group()
@click.option('--url', default=DEFAULT_URL, show_default=True, envvar="PROXY_URL", help="Base URL of the running proxy")
@click.option('--timeout', default=10.0, show_default=True, help="Request timeout in seconds")
@click.pass_context
def ctl(ctx, url, timeout):
    """Inspect and change the delay and kill-switch of a running proxy."""
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["timeout"] = timeout


@ctl.group()
def delay():
    """Injected delay (milliseconds)."""


@delay.command("get")
@click.pass_context
def delay_get(ctx):
    _call(ctx, "GET", "/api/delay")


@delay.command("set")
@click.argument("milliseconds", type=click.FloatRange(min=0))
@click.pass_context
def delay_set(ctx, milliseconds):
    value = int(milliseconds) if float(milliseconds).is_integer() else milliseconds
    _call(ctx, "POST", "/api/delay", {"delay": value})


@ctl.group("kill-switch")
def kill_switch():
    """Forced response returned instead of the upstream's."""


@kill_switch.command("get")
@click.pass_context
def kill_switch_get(ctx):
    _call(ctx, "GET", "/api/kill-switch")


@kill_switch.command("enable")
@click.option('--status', type=click.IntRange(100, 599), help="Status code to return")
@click.option('--header', 'headers', multiple=True, help="Response header as KEY=VALUE (repeatable)")
@click.option('--body', help="Response body to return")
@click.pass_context
def kill_switch_enable(ctx, status, headers, body):
    payload = {"enabled": True}
    if status is not None:
        payload["status"] = status
    if headers:
        payload["headers"] = _parse_headers(headers)
    if body is not None:
        payload["body"] = body
    _call(ctx, "POST", "/api/kill-switch", payload)


@kill_switch.command("disable")
@click.pass_context
def kill_switch_disable(ctx):
    _call(ctx, "POST", "/api/kill-switch", {"enabled": False})
