"""Data models for the resilient HTTP layer."""

from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ParamValue = Union[str, int, float]


class RetryConfig(BaseModel):
    """Configuration for retry logic with exponential backoff

    Controls retry behavior for transient failures:
    - Number of retries after the first attempt
    - Delay calculation parameters
    - Jitter for request spreading
    """

    retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries after the first attempt (total attempts = retries + 1)",
    )
    base_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Base delay for exponential backoff",
    )
    jitter_factor: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Upper bound of the random jitter as a fraction of the delay",
    )

    @property
    def max_attempts(self) -> int:
        return self.retries + 1


class FetchOptions(BaseModel):
    """Per-call options for ResilientFetcher.fetch"""

    model_config = ConfigDict(frozen=True)

    params: Dict[str, ParamValue] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    retries: int = Field(default=3, ge=0, le=10)
    retry_delay_seconds: float = Field(default=2.0, ge=0.0, le=60.0)
    ttl_seconds: float = Field(default=30 * 60, ge=0.0, description="0 disables caching")
    timeout_seconds: float = Field(default=30.0, gt=0.0, le=300.0)

    @property
    def cache_enabled(self) -> bool:
        return self.ttl_seconds > 0

    def retry_config(self, jitter_factor: Optional[float] = None) -> RetryConfig:
        """Derive the retry ladder for this call."""
        config = RetryConfig(
            retries=self.retries, base_delay_seconds=self.retry_delay_seconds
        )
        if jitter_factor is not None:
            config = config.model_copy(update={"jitter_factor": jitter_factor})
        return config
