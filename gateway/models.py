from pydantic import BaseModel


class HealthStatus(BaseModel):
    status: str
    timestamp: str


class ErrorResponse(BaseModel):
    error: str


class UpstreamInfo(BaseModel):
    id: str
    base_url: str
    path_prefix: str
    mode: str
    description: str
