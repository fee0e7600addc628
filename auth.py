"""
Single-user authentication for the control panel.

There is exactly one admin credential. It is configured once (or replaced by
an already authenticated user), stored as a salted werkzeug password hash in
a small JSON file, and exchanged at login for a signed, time-limited token
produced by itsdangerous. Tokens are stateless: validating one only needs the
secret key and the configured username.
"""
import logging
import os
import threading
from datetime import timedelta
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer
from pydantic import ValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from data_models import AuthCredentials, AuthSettings, AuthToken, OperationResult
from errors import AuthenticationError
from utils import utc_now

TOKEN_SALT = "microwave-auth-token"


class JsonAuthRepository:
    """Persists the AuthSettings document; writes are locked and atomic."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.lock = threading.Lock()

    def get_settings(self) -> Optional[AuthSettings]:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                return AuthSettings.model_validate_json(f.read())
        except FileNotFoundError:
            return None
        except ValidationError as e:
            logging.warning(f"Auth settings file {self.file_path} is unreadable: {e}")
            return None

    def save_settings(self, settings: AuthSettings) -> None:
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with self.lock:
            tmp = self.file_path + ".tmp"
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(settings.model_dump_json(by_alias=True, indent=2))
            os.replace(tmp, self.file_path)


class AuthService:
    """
    Configures the admin credential and issues/validates tokens.

    Args:
        repository: Where the credential is stored.
        secret_key: Signs the tokens; changing it invalidates every token.
        token_ttl_seconds: How long an issued token stays valid.
    """

    def __init__(self, repository: JsonAuthRepository, secret_key: str, token_ttl_seconds: int):
        self.repository = repository
        self.token_ttl_seconds = token_ttl_seconds
        self.serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)

    def is_configured(self) -> bool:
        return self.repository.get_settings() is not None

    def configure(self, username: str, password: str) -> OperationResult:
        """Stores (or replaces) the admin credential."""
        try:
            self.repository.save_settings(
                AuthSettings(username=username, password_hash=generate_password_hash(password))
            )
        except OSError as e:
            logging.exception("Failed to save auth settings.")
            return OperationResult.error(f"Erro ao salvar configurações: {e}", "CONFIGURATION_FAILED")
        logging.info(f"Authentication configured for user '{username}'.")
        return OperationResult.ok("Autenticação configurada com sucesso.")

    def authenticate(self, credentials: AuthCredentials) -> AuthToken:
        """
        Checks a credential and issues a token.

        The username comparison ignores case; the password is checked against
        the stored hash. A successful login updates `last_login_at`.

        Raises:
            AuthenticationError: NOT_CONFIGURED before any credential exists,
                INVALID_CREDENTIALS on a wrong username or password.
        """
        settings = self.repository.get_settings()
        if settings is None:
            raise AuthenticationError("Autenticação não configurada.", "NOT_CONFIGURED")

        if credentials.username.casefold() != settings.username.casefold() or not check_password_hash(
            settings.password_hash, credentials.password
        ):
            logging.warning(f"Failed login attempt for user '{credentials.username}'.")
            raise AuthenticationError("Usuário ou senha inválidos.", "INVALID_CREDENTIALS")

        now = utc_now()
        self.repository.save_settings(settings.model_copy(update={"last_login_at": now}))
        token = self.serializer.dumps({"username": settings.username})
        return AuthToken(
            token=token,
            expires_at=now + timedelta(seconds=self.token_ttl_seconds),
            username=settings.username,
        )

    def get_username_from_token(self, token: Optional[str]) -> Optional[str]:
        """The username a valid token was issued to, or None for any invalid, expired or stale token."""
        if not token:
            return None
        try:
            payload = self.serializer.loads(token, max_age=self.token_ttl_seconds)
        except BadData:
            return None

        settings = self.repository.get_settings()
        username = payload.get("username") if isinstance(payload, dict) else None
        # Tokens issued before the credential was replaced no longer count.
        if settings is None or username != settings.username:
            return None
        return username

    def validate_token(self, token: Optional[str]) -> bool:
        return self.get_username_from_token(token) is not None
