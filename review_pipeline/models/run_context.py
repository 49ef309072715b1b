"""
Run Context Model
Immutable per-run context shared by every pipeline stage: the correlation id
generated once at start-up plus the resolved settings.
"""
import uuid

from pydantic import BaseModel, ConfigDict, Field

from review_pipeline.core.config import AppSettings


class RunContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    correlation_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    settings: AppSettings = Field(default_factory=AppSettings)

    @classmethod
    def create(cls, settings: AppSettings) -> "RunContext":
        return cls(settings=settings)
