"""
Log Agent Configuration.

Settings for shipping structured records to a remote collector (logstash or
any agent reading newline-delimited JSON).
"""

import socket
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..shipper import DEFAULT_CHANNEL_SIZE, DeliveryPolicy


class AgentSettings(BaseSettings):
    """
    Remote log agent settings.
    Prefix: DUOLOG_AGENT_
    """

    model_config = SettingsConfigDict(
        env_prefix="DUOLOG_AGENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    enabled: bool = Field(default=False, description="Ship records to the agent")
    dsn: str = Field(default="", description="Agent address, e.g. tcp://127.0.0.1:5000")
    app_id: str = Field(default="", description="Application identity field")
    host: str = Field(default_factory=socket.gethostname, description="Host identity field")
    instance_id: str = Field(default_factory=socket.gethostname, description="Instance identity field")
    category: Optional[str] = Field(default=None, description="Optional category field")
    channel_size: int = Field(default=DEFAULT_CHANNEL_SIZE, ge=1, description="Delivery queue capacity")
    policy: DeliveryPolicy = Field(default=DeliveryPolicy.DROP, description="Behaviour when the queue is full")
    block_timeout: float = Field(default=1.0, ge=0, description="Seconds to wait under the block policy")
    connect_timeout: float = Field(default=5.0, gt=0, description="Seconds allowed for the initial dial")

    def identity_fields(self) -> dict[str, str]:
        """Known fields injected into every shipped record."""
        fields = {
            "app_id": self.app_id,
            "host": self.host,
            "instance_id": self.instance_id,
        }
        if self.category:
            fields["category"] = self.category
        return fields
