from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator


class ProxySettings(BaseModel):
    enabled: bool = False
    url: str | None = None
    username: str | None = None
    password: SecretStr | None = None

    model_config = {"extra": "forbid"}


class HttpSettings(BaseModel):
    timeout: float = Field(default=10.0, gt=0)
    health_timeout: float = Field(default=5.0, gt=0)
    user_agent: str = "fundspread/1.0"

    model_config = {"extra": "forbid"}


class AnalyticsSettings(BaseModel):
    min_delta: float = Field(default=0.001, ge=0)
    min_abs_funding_rate: float = Field(default=0.0, ge=0)
    min_time_gap_minutes: float = Field(default=30.0, ge=0)

    model_config = {"extra": "forbid"}


class WatchSettings(BaseModel):
    interval_seconds: float = Field(default=60.0, gt=0)
    top: int = Field(default=10, ge=1)

    model_config = {"extra": "forbid"}


class ExchangeSettings(BaseModel):
    enabled: bool = True
    timeout: float | None = Field(default=None, gt=0)
    options: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}


# Configuration order is the column order of every summary and report.
DEFAULT_EXCHANGES: dict[str, dict[str, Any]] = {
    "binance": {"enabled": True},
    "bybit": {"enabled": True},
    "bitget": {"enabled": True},
    "bingx": {"enabled": True},
    "bitmex": {"enabled": True},
    "okx": {"enabled": True},
    "mexc": {"enabled": False},
    "kraken": {"enabled": False, "timeout": 15.0},
}


class Settings(BaseModel):
    env: str = "dev"
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    watch: WatchSettings = Field(default_factory=WatchSettings)
    exchanges: dict[str, ExchangeSettings] = Field(default_factory=lambda: dict(DEFAULT_EXCHANGES))

    model_config = {"extra": "forbid", "validate_default": True}

    @field_validator("exchanges", mode="before")
    @classmethod
    def _merge_default_exchanges(cls, value: Any) -> Any:
        """Overlay user exchange entries on the built-in defaults."""
        if value is None:
            value = {}
        if not isinstance(value, dict):
            return value

        merged: dict[str, Any] = {name: dict(entry) for name, entry in DEFAULT_EXCHANGES.items()}
        for name, entry in value.items():
            key = str(name).lower()
            if isinstance(entry, ExchangeSettings):
                entry = entry.model_dump(exclude_unset=True)
            if entry is None:
                entry = {}
            if isinstance(entry, dict):
                merged[key] = {**merged.get(key, {}), **entry}
            else:
                merged[key] = entry
        return merged

    @property
    def enabled_exchanges(self) -> list[str]:
        return [name for name, exch in self.exchanges.items() if exch.enabled]

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        proxy = data.get("proxy")
        if isinstance(proxy, dict) and proxy.get("password") is not None:
            proxy["password"] = "***"
        return data
