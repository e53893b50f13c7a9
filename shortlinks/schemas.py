from pydantic import BaseModel


class ContinueOut(BaseModel):
    success: bool
    url: str | None = None
    message: str | None = None


class HealthOut(BaseModel):
    status: str
    env: str
