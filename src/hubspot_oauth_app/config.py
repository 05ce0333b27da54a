import os
import re
from typing import Mapping

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_SCOPE = "crm.objects.contacts.read"

_SCOPE_SEPARATOR = re.compile(r" |, ?|%20")


def parse_scopes(raw: str | None) -> str:
    """Normalize a SCOPE value into a single space-joined scope string.

    Accepts space, comma (with or without a trailing space) or ``%20``
    delimited lists, e.g. ``"a,b, c"`` or ``"a%20b"``.
    """

    if not raw:
        return DEFAULT_SCOPE
    scopes = [s for s in _SCOPE_SEPARATOR.split(raw) if s]
    return " ".join(scopes) or DEFAULT_SCOPE


class BaseConfig:
    """Base configuration shared by all environments."""

    # --- Flask Configuration ---
    SECRET_KEY = os.environ.get("SESSION_SECRET")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    # The quickstart is served over plain http://localhost.
    SESSION_COOKIE_SECURE = False

    PORT = int(os.environ.get("PORT", 3000))

    # --- Provider app credentials ---
    CLIENT_ID = os.environ.get("CLIENT_ID")
    CLIENT_SECRET = os.environ.get("CLIENT_SECRET")

    SCOPE = parse_scopes(os.environ.get("SCOPE"))

    # Must match the redirect URL registered on the provider app exactly.
    REDIRECT_PATH = "/oauth-callback"
    REDIRECT_URI = f"http://localhost:{PORT}{REDIRECT_PATH}"

    # --- Provider endpoints ---
    AUTHORIZE_URL = os.environ.get(
        "AUTHORIZE_URL", "https://app.hubspot.com/oauth/authorize"
    )
    TOKEN_URL = os.environ.get("TOKEN_URL", "https://api.hubapi.com/oauth/v1/token")
    CONTACTS_URL = os.environ.get(
        "CONTACTS_URL", "https://api.hubapi.com/contacts/v1/lists/all/contacts/all"
    )

    # Seconds to wait on outbound calls to the provider.
    HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", 10))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Open the home page in a local browser once the server starts.
    OPEN_BROWSER = os.environ.get("OPEN_BROWSER", "true").lower() == "true"

    @classmethod
    def validate(cls, config: Mapping[str, object] | None = None) -> None:
        """Validate that the provider credentials and session secret are present.

        Runs inside ``create_app`` so a misconfigured process aborts before
        it ever binds the listening port.
        """

        source = config if config is not None else {}
        required = {
            "CLIENT_ID": "CLIENT_ID",
            "CLIENT_SECRET": "CLIENT_SECRET",
            "SECRET_KEY": "SESSION_SECRET",
        }
        missing = [
            env_name
            for attr, env_name in required.items()
            if not source.get(attr, getattr(cls, attr, None))
        ]
        if missing:
            raise RuntimeError(
                f"Missing {', '.join(missing)} environment variable. "
                "Check your environment variables or .env file."
            )


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    OPEN_BROWSER = False


class TestingConfig(BaseConfig):
    """Configuration used in unit tests.

    Provides dummy but syntactically valid values so tests do not
    require real secrets or network calls.
    """

    TESTING = True
    SECRET_KEY = "test-session-secret"
    CLIENT_ID = "test-client-id"
    CLIENT_SECRET = "test-client-secret"
    PORT = 3000
    REDIRECT_URI = "http://localhost:3000/oauth-callback"
    SCOPE = DEFAULT_SCOPE
    AUTHORIZE_URL = "https://app.hubspot.com/oauth/authorize"
    TOKEN_URL = "https://api.hubapi.com/oauth/v1/token"
    CONTACTS_URL = "https://api.hubapi.com/contacts/v1/lists/all/contacts/all"
    OPEN_BROWSER = False
    # Disable CSRF in tests to simplify client interactions.
    WTF_CSRF_ENABLED = False


def get_config_class() -> type[BaseConfig]:
    """Select the appropriate configuration class from APP_ENV.

    Defaults to ``DevelopmentConfig`` when ``APP_ENV`` is not set.
    """

    env = os.environ.get("APP_ENV", "development").lower()
    if env in {"prod", "production"}:
        return ProductionConfig
    if env in {"test", "testing"}:
        return TestingConfig
    return DevelopmentConfig
