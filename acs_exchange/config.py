"""Configuration loading and strongly-typed settings models.

Centralizes parsing of `config.json` (or an override via ACS_APP_CONFIG env var) into dataclasses
to provide IDE/typing assistance and safer downstream access. Every value can also come from the
environment (a `.env` file is honoured), which is the recommended way to supply secrets.

Security recommendations:
 - Prefer environment variables for secrets (client secret, ACS connection string) in production.
 - Do not commit real secrets in source control. `config.example.json` shows structure only.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .errors import ConfigurationMissing

CONFIG_FILENAME = os.environ.get("ACS_APP_CONFIG", "config.json")
DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"

# env var -> (section, key); section None means a top-level AppConfig field
ENV_OVERRIDES = {
    "AZURE_TENANT_ID": (None, "tenant_id"),
    "AZURE_CLIENT_ID": (None, "client_id"),
    "AZURE_CLIENT_SECRET": (None, "client_secret"),
    "AZURE_AUTHORITY_HOST": (None, "authority_host"),
    "ACS_CONNECTION_STRING": ("acs", "connection_string"),
    "ACS_ENDPOINT": ("acs", "endpoint"),
    "LOG_LEVEL": ("server", "log_level"),
    "AZURE_AD_SCOPES": (None, "required_scopes"),
}


@dataclass
class AcsSettings:
    """How to reach the Azure Communication Services identity API.

    Either value is enough: a connection string carries an access key, an endpoint is paired
    with the app registration's client secret credential.
    """
    connection_string: Optional[str] = None
    endpoint: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self.connection_string or self.endpoint)


@dataclass
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 8000
    # Origins allowed to call the API from the browser (the Teams tab); none by default
    cors_origins: List[str] = field(default_factory=list)
    log_level: str = "INFO"


@dataclass
class AppConfig:
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    acs: AcsSettings = field(default_factory=AcsSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    authority_host: str = DEFAULT_AUTHORITY_HOST
    # Upper bound for each outbound call (OBO exchange, ACS identity/token calls)
    call_timeout_seconds: float = 15.0
    # Delegated scopes exposed by this API (AzureAd:Scopes); a caller token must carry one of them.
    # Empty disables the check.
    required_scopes: List[str] = field(default_factory=list)

    @property
    def authority(self) -> str:
        return f"{self.authority_host.rstrip('/')}/{self.tenant_id}"

    def missing_settings(self) -> List[str]:
        """Return the names of required settings that have no value."""
        present: Dict[str, bool] = {
            "AzureAd:TenantId": bool(self.tenant_id),
            "AzureAd:ClientId": bool(self.client_id),
            "AzureAd:ClientSecret": bool(self.client_secret),
            "ConnectionStrings:AzureCommunicationServices": self.acs.configured,
        }
        return [name for name, ok in present.items() if not ok]

    def validate(self) -> "AppConfig":
        """Raise ConfigurationMissing if any required setting is absent."""
        missing = self.missing_settings()
        if missing:
            raise ConfigurationMissing(
                f"Missing required configuration settings: {', '.join(missing)}",
                details={"missing": missing},
            )
        return self

    @staticmethod
    def load(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> "AppConfig":
        """Build the configuration from the JSON file (if any) and the environment.

        An explicitly requested file must exist; the default `config.json` is optional so that
        environment-only deployments (App Service, Functions) work without it.
        """
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)
        config_path = path or CONFIG_FILENAME
        raw: dict = {}
        if os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as f:
                raw = json.load(f) or {}
        elif path:
            raise FileNotFoundError(
                f"Config file '{config_path}' not found. Copy 'config.example.json' to 'config.json' and fill values."
            )

        sections = {
            None: {k: v for k, v in raw.items() if k not in ("acs", "server")},
            "acs": {**(raw.get("acs") or {})},
            "server": {**(raw.get("server") or {})},
        }
        # Environment variable overrides to avoid storing secrets in file
        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if value:
                sections[section][key] = value

        top = sections[None]
        server = ServerSettings(**sections["server"])
        server.port = int(server.port)
        return AppConfig(
            tenant_id=top.get("tenant_id", ""),
            client_id=top.get("client_id", ""),
            client_secret=top.get("client_secret", ""),
            acs=AcsSettings(**sections["acs"]),
            server=server,
            authority_host=top.get("authority_host") or DEFAULT_AUTHORITY_HOST,
            call_timeout_seconds=float(top.get("call_timeout_seconds", 15.0)),
            required_scopes=_scope_list(top.get("required_scopes")),
        )


def _scope_list(value) -> List[str]:
    """Accept scopes as a JSON list or a space/comma separated string (env var form)."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.replace(",", " ").split()
    return [str(s) for s in value if s]
