"""Pydantic v2 configuration schema with strict validation."""

from pydantic import BaseModel, Field


class ArchiveConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = "https://mesonet.agron.iastate.edu"
    user_agent: str = "torplace/0.1.0"
    timeout: float = Field(default=30.0, gt=0.0)
    retry_delay: float = Field(default=1.0, ge=0.0)
    max_concurrency: int = Field(default=8, ge=1)


class PlacefileConfig(BaseModel):
    model_config = {"extra": "forbid"}

    title: str = "Past TORs"
    refresh_minutes: int = Field(default=9999, ge=1)


class ServerConfig(BaseModel):
    model_config = {"extra": "forbid"}

    host: str = "127.0.0.1"
    port: int = Field(default=8888, ge=1, le=65535)


class ServiceConfig(BaseModel):
    model_config = {"extra": "forbid"}

    archive: ArchiveConfig = ArchiveConfig()
    placefile: PlacefileConfig = PlacefileConfig()
    server: ServerConfig = ServerConfig()
