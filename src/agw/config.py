"""Gateway configuration — MCP servers, research API, and model settings.

Settings come from an optional YAML file and are then overlaid with
environment variables, so a deployment can run with no file at all::

    AGW_MCP_URL=https://rube.app/mcp AGW_MCP_TOKEN=... agw mcp list-tools

Recognised variables:

``AGW_MCP_URL`` / ``AGW_MCP_TOKEN`` / ``AGW_MCP_NAME``
    Adds (or replaces) one HTTP MCP server, authenticated with a bearer token.
``PERPLEXITY_API_KEY``
    API key for the research tool.
``AGW_MODEL``
    LiteLLM model string for the assistant (``provider/model``).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

PERPLEXITY_API_URL = "https://api.perplexity.ai/chat/completions"
DEFAULT_MAX_RESOURCE_BYTES = 100_000
DEFAULT_SERVER_NAME = "rube"


class ConfigError(Exception):
    """Raised when a settings file cannot be read or fails validation."""


class MCPServerRef(BaseModel):
    """Reference to one MCP server the gateway connects to."""

    name: str
    transport: Literal["stdio", "websocket", "http"] = "http"
    command: str | None = None
    url: str | None = None
    headers: dict[str, str] = {}
    env: dict[str, str] = {}
    timeout: float = 30.0

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        # Tool keys are "<server>_<tool>"; the first underscore must be the separator.
        if not value:
            msg = "server name must not be empty"
            raise ValueError(msg)
        if "_" in value:
            msg = f"server name '{value}' must not contain '_'"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _check_endpoint(self) -> MCPServerRef:
        if self.transport == "stdio" and not self.command:
            msg = f"server '{self.name}' uses stdio transport and must specify 'command'"
            raise ValueError(msg)
        if self.transport != "stdio" and not self.url:
            msg = f"server '{self.name}' uses {self.transport} transport and must specify 'url'"
            raise ValueError(msg)
        return self


class ModelConfig(BaseModel):
    """Configuration for the assistant's model.

    The ``model`` field uses LiteLLM's naming convention:
    ``provider/model_name`` (e.g. ``openai/gpt-4o``).
    """

    model: str = "openai/gpt-4o"
    api_key: str | None = None
    api_base: str | None = None
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @property
    def provider(self) -> str:
        if "/" in self.model:
            return self.model.split("/", 1)[0]
        return "openai"


class ResearchSettings(BaseModel):
    """Settings for the Perplexity-backed research tool."""

    api_key: str | None = None
    api_url: str = PERPLEXITY_API_URL
    model: str = "sonar"
    max_tokens: int = 1000
    temperature: float = 0.2
    timeout: float = 60.0


class GatewaySettings(BaseModel):
    """Top-level settings, as parsed from ``agw.yaml``.

    Example YAML::

        servers:
          - name: rube
            transport: http
            url: https://rube.app/mcp
            headers:
              Authorization: Bearer <token>
          - name: fs
            transport: stdio
            command: npx @modelcontextprotocol/server-filesystem /tmp
        research:
          model: sonar-pro
        model:
          model: openai/gpt-4o
        max_resource_bytes: 50000
    """

    servers: list[MCPServerRef] = []
    research: ResearchSettings = Field(default_factory=ResearchSettings)
    model: ModelConfig = Field(default_factory=ModelConfig)
    max_resource_bytes: int = Field(default=DEFAULT_MAX_RESOURCE_BYTES, gt=0)

    @model_validator(mode="after")
    def _check_unique_servers(self) -> GatewaySettings:
        seen: set[str] = set()
        for server in self.servers:
            if server.name in seen:
                msg = f"duplicate server name '{server.name}'"
                raise ValueError(msg)
            seen.add(server.name)
        return self


def load_settings(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> GatewaySettings:
    """Load settings from *path* (if given) and overlay environment variables."""
    data: dict[str, Any] = {}
    if path is not None:
        data = _read_settings_file(Path(path))

    environ = os.environ if env is None else env
    data = _apply_env(data, environ)

    try:
        return GatewaySettings.model_validate(data)
    except ValidationError as exc:
        source = str(path) if path is not None else "environment"
        msg = f"Invalid gateway settings ({source}): {exc}"
        raise ConfigError(msg) from exc


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read settings file {path}: {exc}"
        raise ConfigError(msg) from exc
    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        msg = f"Settings file {path} is not valid YAML: {exc}"
        raise ConfigError(msg) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        msg = f"Settings file {path} must contain a mapping at the top level"
        raise ConfigError(msg)
    return loaded


def _apply_env(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    merged = dict(data)

    url = environ.get("AGW_MCP_URL")
    if url:
        name = environ.get("AGW_MCP_NAME") or DEFAULT_SERVER_NAME
        server: dict[str, Any] = {"name": name, "transport": "http", "url": url}
        token = environ.get("AGW_MCP_TOKEN")
        if token:
            server["headers"] = {"Authorization": f"Bearer {token}"}
        servers = [
            s
            for s in merged.get("servers") or []
            if not (isinstance(s, dict) and s.get("name") == name)
        ]
        merged["servers"] = [*servers, server]

    api_key = environ.get("PERPLEXITY_API_KEY")
    if api_key:
        merged["research"] = {**(merged.get("research") or {}), "api_key": api_key}

    model = environ.get("AGW_MODEL")
    if model:
        merged["model"] = {**(merged.get("model") or {}), "model": model}

    return merged
