import os
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledger_money.constants import (
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_NODE_URL,
    ENV_PREFIX,
    READ_TIMEOUT_SECONDS,
)
from ledger_money.logging_utils import env_bool


class RegistryConfig(BaseModel):
    """Where the asset registry looks up descriptors."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    node_url: str = DEFAULT_NODE_URL
    connect_timeout: float = Field(default=CONNECT_TIMEOUT_SECONDS, gt=0)
    read_timeout: float = Field(default=READ_TIMEOUT_SECONDS, gt=0)
    assets_file: Optional[str] = None
    use_node: bool = True

    @field_validator("node_url")
    @classmethod
    def validate_node_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"Node URL {value} must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("assets_file")
    @classmethod
    def validate_assets_file(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def timeouts(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)

    @staticmethod
    def from_env() -> "RegistryConfig":
        load_dotenv()

        data = {}
        node_url = os.getenv(f"{ENV_PREFIX}NODE_URL")
        if node_url:
            data["node_url"] = node_url

        connect_timeout = os.getenv(f"{ENV_PREFIX}CONNECT_TIMEOUT")
        if connect_timeout:
            data["connect_timeout"] = connect_timeout

        read_timeout = os.getenv(f"{ENV_PREFIX}READ_TIMEOUT")
        if read_timeout:
            data["read_timeout"] = read_timeout

        assets_file = os.getenv(f"{ENV_PREFIX}ASSETS_FILE")
        if assets_file:
            data["assets_file"] = assets_file

        data["use_node"] = env_bool(f"{ENV_PREFIX}USE_NODE", True)

        return RegistryConfig(**data)


def load_config(path: str) -> RegistryConfig:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

    # Relative asset tables are resolved against the config file's directory.
    assets_file = data.get("assets_file")
    if assets_file and not os.path.isabs(assets_file):
        data["assets_file"] = os.path.join(os.path.dirname(os.path.abspath(path)), assets_file)

    return RegistryConfig(**data)
