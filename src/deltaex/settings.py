from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SecretStr


class ProxySettings(BaseModel):
    enabled: bool = False
    url: str | None = None
    username: str | None = None
    password: SecretStr | None = None

    model_config = {"extra": "forbid"}


class DeltaCredentials(BaseModel):
    api_key: SecretStr
    api_secret: SecretStr | None = None

    model_config = {"extra": "forbid"}


class DeltaSettings(BaseModel):
    sandbox: bool = False
    version: str = "v2"
    timeout_s: float = Field(default=10.0, gt=0)
    credentials: DeltaCredentials | None = None
    common_currencies: dict[str, str] | None = None

    model_config = {"extra": "forbid"}


class Settings(BaseModel):
    env: str = "dev"
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    delta: DeltaSettings = Field(default_factory=DeltaSettings)

    model_config = {"extra": "forbid"}

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        creds = data.get("delta", {}).get("credentials")
        if isinstance(creds, dict):
            if "api_key" in creds:
                creds["api_key"] = "***"
            if creds.get("api_secret") is not None:
                creds["api_secret"] = "***"
        proxy = data.get("proxy")
        if isinstance(proxy, dict) and proxy.get("password") is not None:
            proxy["password"] = "***"
        return data
