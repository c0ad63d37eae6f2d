# config.py
# Loop configuration. Values come from keyword arguments or, via from_env(),
# from the process environment and an optional .env file.

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from stepwise.cooldown import DEFAULT_MAX_COOLDOWN_MS, DEFAULT_MIN_COOLDOWN_MS

DEFAULT_MODEL = "anthropic/claude-3.5-haiku"
DEFAULT_MAX_STEPS = 30


class LoopConfig(BaseModel):
    """Step budget and cooldown bounds for one orchestrator."""

    max_steps: int = Field(default=DEFAULT_MAX_STEPS, ge=1)
    min_cooldown_ms: int = Field(default=DEFAULT_MIN_COOLDOWN_MS, ge=0)
    max_cooldown_ms: int = Field(default=DEFAULT_MAX_COOLDOWN_MS, ge=0)

    @model_validator(mode="after")
    def _check_cooldown_bounds(self) -> "LoopConfig":
        if self.min_cooldown_ms > self.max_cooldown_ms:
            raise ValueError("min_cooldown_ms must not exceed max_cooldown_ms.")
        return self

    @classmethod
    def from_env(cls, **overrides) -> "LoopConfig":
        load_dotenv()
        values = {
            "max_steps": os.getenv("STEPWISE_MAX_STEPS"),
            "min_cooldown_ms": os.getenv("STEPWISE_MIN_COOLDOWN_MS"),
            "max_cooldown_ms": os.getenv("STEPWISE_MAX_COOLDOWN_MS"),
        }
        values = {key: value for key, value in values.items() if value is not None}
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)


def default_model() -> str:
    load_dotenv()
    return os.getenv("STEPWISE_MODEL", DEFAULT_MODEL)
