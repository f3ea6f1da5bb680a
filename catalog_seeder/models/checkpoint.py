"""Data models for the seeding checkpoint."""

from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class SeedStage(str, Enum):
    COLLECTION = "collection"
    UPSERTING = "upserting"


class SeedCheckpoint(BaseModel):
    """Durable progress record of a seeding run.

    Serialized with camelCase keys so files written by earlier seeders
    (which used ``appidsCollected``) still load.
    """

    model_config = ConfigDict(populate_by_name=True)

    stage: SeedStage
    identifiers: List[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("identifiers", "appidsCollected"),
    )
    last_processed_index: int = Field(0, ge=0, alias="lastProcessedIndex")
    batches_completed: int = Field(
        0,
        ge=0,
        alias="batchesCompleted",
        validation_alias=AliasChoices(
            "batchesCompleted", "batchesUpserted", "batches_completed"
        ),
    )
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def check_offset(self) -> "SeedCheckpoint":
        if self.last_processed_index > len(self.identifiers):
            raise ValueError(
                f"lastProcessedIndex {self.last_processed_index} exceeds "
                f"{len(self.identifiers)} identifiers"
            )
        return self

    @property
    def remaining(self) -> int:
        return len(self.identifiers) - self.last_processed_index

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
