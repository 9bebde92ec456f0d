from pydantic import BaseModel, ConfigDict, Field


class StatusResponse(BaseModel):
    status: bool = True


class PreCacheResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: bool
    cached_keys: list[str] = Field(default_factory=list, alias="cachedKeys")


class ErrorResponse(BaseModel):
    status: int
    error: str


class HealthResponse(BaseModel):
    status: str
    cache_enabled: bool
    data_dir_exists: bool
