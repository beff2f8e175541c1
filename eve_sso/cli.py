"""
EVE SSO CLI Commands

Command-line login for EVE Online SSO. Application credentials come from
the environment (EVE_CLIENT_ID, EVE_SECRET_KEY, EVE_CALLBACK_URL,
EVE_SCOPES).
"""

import os
import sys
import time
import webbrowser
from pathlib import Path

import click

from eve_sso._logging import _turn_on_debug, verbose_logger
from eve_sso.client import EveOnlineSSO
from eve_sso.config import SSOConfig
from eve_sso.exceptions import InvalidStateError, SSOError
from eve_sso.session import FileSession
from eve_sso.token_store import TokenStore


def _config_dir() -> Path:
    return Path(os.getenv("EVE_SSO_HOME", str(Path.home() / ".eve_sso")))


def _session_file() -> Path:
    return _config_dir() / "session.json"


def _token_store() -> TokenStore:
    return TokenStore(_config_dir() / "tokens.json")


def _load_client() -> EveOnlineSSO:
    config = SSOConfig.from_env()
    errors = config.validate()
    if errors:
        for error in errors:
            click.echo(f"❌ {error}")
        click.echo("   Set EVE_CLIENT_ID, EVE_SECRET_KEY and EVE_CALLBACK_URL")
        sys.exit(1)
    return EveOnlineSSO.from_config(config)


def _format_expiry(expires_at) -> str:
    if expires_at is None:
        return "unknown"
    remaining = expires_at - int(time.time())
    if remaining <= 0:
        return "expired"
    return f"{remaining / 60:.0f} minutes"


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def sso(debug: bool):
    """EVE Online SSO authentication management."""
    if debug:
        _turn_on_debug()


@sso.command()
@click.option(
    "--no-browser",
    is_flag=True,
    help="Don't automatically open browser"
)
def login(no_browser: bool):
    """
    Start EVE SSO login flow.

    Prints the login URL (and opens it unless --no-browser). After logging
    in, EVE redirects to your callback URL with CODE and STATE parameters;
    pass both to 'eve-sso callback'.
    """
    client = _load_client()
    session = FileSession(_session_file())

    with client:
        login_url = client.get_login_url(session)

    click.echo("🔐 Starting EVE Online SSO login...")
    click.echo("=" * 60)

    if not no_browser:
        click.echo("🌐 Opening browser...")
        webbrowser.open(login_url)
    else:
        click.echo("\n🔗 Please visit this URL to log in:")
        click.echo(f"   {login_url}")

    click.echo("\n" + "=" * 60)
    click.echo("📝 After login you'll be redirected to:")
    click.echo(f"   {client.callback_url}?code=CODE&state=STATE")
    click.echo("\n💡 Then run:")
    click.echo("   eve-sso callback <CODE> <STATE>")
    click.echo("=" * 60)


@sso.command()
@click.argument("code")
@click.argument("state")
def callback(code: str, state: str):
    """
    Complete the login with the values from the callback URL.

    CODE: The authorization code from the callback URL

    STATE: The state from the callback URL
    """
    session_file = _session_file()
    if not session_file.exists():
        click.echo("❌ No login in progress. Please run 'eve-sso login' first.")
        sys.exit(1)

    client = _load_client()
    session = FileSession(session_file)

    try:
        with client:
            click.echo("🔄 Exchanging authorization code for tokens...")
            character = client.handle_callback(code, state, session)
    except InvalidStateError as e:
        click.echo(f"❌ Login rejected: {e}")
        click.echo("   Please run 'eve-sso login' again.")
        sys.exit(1)
    except SSOError as e:
        click.echo(f"❌ Error: {e}")
        sys.exit(1)

    token_file = _token_store().save(character)
    session.clear()

    click.echo("\n" + "=" * 60)
    click.echo("✅ Login successful!")
    click.echo("=" * 60)
    click.echo("\n📊 Character:")
    click.echo(f"   • Name: {character.character_name} ({character.character_id})")
    click.echo(f"   • Scopes: {character.scopes or '(none)'}")
    click.echo(f"   • Expires in: {_format_expiry(character.expires_at)}")
    click.echo(f"\n📁 Tokens saved to: {token_file}")


@sso.command()
def refresh():
    """Refresh the stored access token."""
    store = _token_store()
    try:
        current = store.load()
    except SSOError as e:
        click.echo(f"❌ {e}")
        sys.exit(1)

    if current is None:
        click.echo("❌ No tokens found to refresh")
        click.echo("   Run 'eve-sso login' to authenticate")
        sys.exit(1)

    click.echo("🔄 Refreshing EVE SSO tokens...")
    client = _load_client()
    try:
        with client:
            character = client.refresh_character_token(current.refresh_token)
    except SSOError as e:
        verbose_logger.debug(f"Refresh failed for character {current.character_id}: {e}")
        click.echo(f"❌ Refresh failed: {e}")
        click.echo("\n   Your refresh token may have been revoked.")
        click.echo("   Run 'eve-sso login' to re-authenticate")
        sys.exit(1)

    store.save(character)
    click.echo("✅ Tokens refreshed successfully!")
    click.echo(f"\n📊 New token expires in: {_format_expiry(character.expires_at)}")


@sso.command()
def status():
    """Show the stored character and token expiry."""
    store = _token_store()

    click.echo("🔍 EVE SSO Status")
    click.echo("=" * 60)

    try:
        character = store.load()
    except SSOError as e:
        click.echo(f"❌ {e}")
        sys.exit(1)

    if character is None:
        click.echo("❌ No tokens found")
        click.echo("\n   Run 'eve-sso login' to authenticate")
        return

    click.echo(f"✅ Using tokens from: {store.path}")
    click.echo("\n📊 Token Status:")
    click.echo(f"   • Character: {character.character_name} ({character.character_id})")
    click.echo(f"   • Scopes: {character.scopes or '(none)'}")
    if character.is_expired():
        click.echo("   • Access token: ❌ Expired (run 'eve-sso refresh')")
    else:
        click.echo(f"   • Access token: ✅ Valid for {_format_expiry(character.expires_at)}")


@sso.command()
def export():
    """Export tokens as environment variables."""
    try:
        character = _token_store().load()
    except SSOError as e:
        click.echo(f"❌ {e}")
        sys.exit(1)

    if character is None:
        click.echo("❌ No tokens found")
        click.echo("   Run 'eve-sso login' to authenticate")
        return

    click.echo("# EVE SSO Token Environment Variables")
    click.echo(f"export EVE_CHARACTER_ID='{character.character_id}'")
    click.echo(f"export EVE_ACCESS_TOKEN='{character.access_token}'")
    click.echo(f"export EVE_REFRESH_TOKEN='{character.refresh_token}'")


@sso.command()
@click.confirmation_option(prompt="Are you sure you want to clear tokens?")
def logout():
    """Clear stored tokens and any pending login."""
    click.echo("🗑️  Clearing EVE SSO tokens...")

    store = _token_store()
    if store.delete():
        click.echo(f"   ✅ Removed: {store.path}")

    session_file = _session_file()
    if session_file.exists():
        FileSession(session_file).clear()
        click.echo("   ✅ Removed: pending login state")

    click.echo("\n✅ Logout complete")


if __name__ == "__main__":
    sso()
