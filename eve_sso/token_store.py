"""
Character Token Store

Keeps the tokens from a completed login on disk so the command line tools
can refresh and reuse them. Encrypted with Fernet when a key is configured.
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from eve_sso._logging import verbose_logger
from eve_sso.exceptions import SSOError
from eve_sso.tokens import CharacterToken

DEFAULT_TOKEN_FILE = Path.home() / ".eve_sso" / "tokens.json"


class TokenStore:
    """File-backed storage for a single CharacterToken."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        encryption_key: Optional[Union[str, bytes]] = None,
    ):
        """
        Args:
            path: Token file location, defaults to ~/.eve_sso/tokens.json
            encryption_key: Fernet key. Falls back to
                            EVE_SSO_TOKEN_ENCRYPTION_KEY; stored in plain
                            JSON when neither is set.
        """
        self.path = Path(path) if path else DEFAULT_TOKEN_FILE

        encryption_key = encryption_key or os.getenv("EVE_SSO_TOKEN_ENCRYPTION_KEY")
        if encryption_key:
            self.cipher_suite: Optional[Fernet] = Fernet(
                encryption_key.encode() if isinstance(encryption_key, str) else encryption_key
            )
        else:
            self.cipher_suite = None

    @property
    def encrypted(self) -> bool:
        return self.cipher_suite is not None

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, token: CharacterToken) -> Path:
        payload = json.dumps(token.to_dict(), indent=2)
        if self.cipher_suite:
            payload = self.cipher_suite.encrypt(payload.encode()).decode()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(payload)
        self.path.chmod(0o600)

        verbose_logger.debug(f"Saved tokens for character {token.character_id} to {self.path}")
        return self.path

    def load(self) -> Optional[CharacterToken]:
        """
        Returns:
            The stored token, or None if nothing has been saved

        Raises:
            SSOError: If the file can't be decrypted or parsed
        """
        if not self.path.exists():
            return None

        payload = self.path.read_text()
        if self.cipher_suite:
            try:
                payload = self.cipher_suite.decrypt(payload.encode()).decode()
            except InvalidToken as e:
                raise SSOError(f"Could not decrypt token file {self.path}") from e

        try:
            return CharacterToken.from_dict(json.loads(payload))
        except (ValueError, KeyError) as e:
            raise SSOError(f"Token file {self.path} is corrupt: {e}") from e

    def delete(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        verbose_logger.debug(f"Removed token file {self.path}")
        return True
