from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://api.weatherstack.com"
DEFAULT_SECRET_NAME = "weatherstack-access-key"

_log = logging.getLogger(__name__)


@dataclass
class WeatherSettings:
    """Configuration for the Weatherstack API client."""
    access_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    units: str = 'm'  # 'm' metric, 's' scientific, 'f' fahrenheit

    @staticmethod
    def from_env(key_vault_name: Optional[str] = None) -> 'WeatherSettings':
        """Create Weather settings from environment variables.

        The access key is taken from WEATHERSTACK_ACCESS_KEY. When that is unset and a Key Vault
        is named (argument or KEY_VAULT_NAME), the key is read from Azure Key Vault instead.
        """
        access_key = os.environ.get('WEATHERSTACK_ACCESS_KEY')
        if not access_key:
            vault = key_vault_name or os.environ.get('KEY_VAULT_NAME')
            if not vault:
                raise ValueError(
                    "No Weatherstack access key: set WEATHERSTACK_ACCESS_KEY or KEY_VAULT_NAME"
                )
            secret_name = os.environ.get('WEATHERSTACK_SECRET_NAME', DEFAULT_SECRET_NAME)
            access_key = access_key_from_key_vault(vault, secret_name)

        base_url = os.environ.get('WEATHERSTACK_BASE_URL', DEFAULT_BASE_URL).rstrip('/')
        raw_timeout = os.environ.get('WEATHER_TIMEOUT_SECONDS', '10')
        try:
            timeout = float(raw_timeout)
        except ValueError as e:
            raise ValueError(f"Malformed WEATHER_TIMEOUT_SECONDS: {raw_timeout!r}") from e
        if timeout <= 0:
            raise ValueError(f"WEATHER_TIMEOUT_SECONDS must be positive, got {timeout}")
        units = os.environ.get('WEATHER_UNITS', 'm')

        return WeatherSettings(
            access_key=access_key,
            base_url=base_url,
            timeout=timeout,
            units=units,
        )


def access_key_from_key_vault(key_vault_name: str, secret_name: str = DEFAULT_SECRET_NAME) -> str:
    """Fetch the Weatherstack access key stored as a Key Vault secret."""
    from azure.identity import DefaultAzureCredential
    from azure.keyvault.secrets import SecretClient

    key_vault_url = f"https://{key_vault_name}.vault.azure.net/"
    secret_client = SecretClient(vault_url=key_vault_url, credential=DefaultAzureCredential())
    secret = secret_client.get_secret(secret_name)
    if not secret.value:
        raise ValueError(f"Key Vault secret '{secret_name}' in {key_vault_name} is empty")
    _log.info(f"Retrieved Weatherstack access key from Key Vault {key_vault_name}")
    return secret.value
