"""
配置文件 - 客户端配置管理
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ENDPOINT = "partitions.api.antinvestor.com:443"
# Largest int32, so large list responses are never truncated
MAX_RECEIVE_MESSAGE_LENGTH = 2**31 - 1


class TlsOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    ca: Optional[str] = None
    cert: Optional[str] = None
    key: Optional[str] = None


class ClientOptions(BaseModel):
    """Immutable connection options for the partition client.

    Built once (from settings or explicitly) and handed to the client;
    use ``model_copy(update=...)`` to derive a variant.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str = DEFAULT_ENDPOINT
    # Per-call budget in seconds, shared by single-entity and list calls
    call_timeout: float = Field(default=5.0, gt=0)
    connect_timeout: float = Field(default=10.0, gt=0)
    wait_for_ready: bool = True
    max_receive_message_length: int = MAX_RECEIVE_MESSAGE_LENGTH
    enable_service_config: bool = False
    # Extra gRPC channel args; same key overrides a default
    channel_args: dict[str, Any] = Field(default_factory=dict)
    tls: TlsOptions = Field(default_factory=TlsOptions)

    @field_validator("endpoint")
    @classmethod
    def _validate_endpoint(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("endpoint must not be empty")
        return v

    def channel_options(self) -> list[tuple[str, Any]]:
        """Merged gRPC channel arguments: defaults first, then ``channel_args``."""
        merged: dict[str, Any] = {
            "grpc.service_config_disable_resolution": 0 if self.enable_service_config else 1,
            "grpc.max_receive_message_length": self.max_receive_message_length,
        }
        merged.update(self.channel_args)
        return list(merged.items())


class Settings(BaseSettings):
    """项目配置"""

    DEBUG: bool = Field(default=False)

    # 分组配置：partition 客户端选项采用嵌套模型
    partition: ClientOptions = Field(default_factory=ClientOptions)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


# 全局配置实例
settings = Settings()
