"""State models for the exhibit page."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.chains.exhibit_generator import ExhibitData


class Phase(str, Enum):
    """Interaction phase of the exhibit page."""

    IDLE = "idle"
    LOADING = "loading"
    RESULT = "result"
    FAILED = "failed"


class InteractionState(BaseModel):
    """Snapshot of the page state.

    Exactly one phase is active. ``result`` is set only in RESULT and
    ``error_message`` only in FAILED.
    """

    model_config = ConfigDict(frozen=True)

    phase: Phase = Field(default=Phase.IDLE, description="現在のフェーズ")
    result: ExhibitData | None = Field(default=None, description="生成された看板データ")
    error_message: str | None = Field(default=None, description="エラーメッセージ")

    @model_validator(mode="after")
    def check_phase_payload(self) -> "InteractionState":
        """Reject payloads that do not belong to the phase."""
        if (self.result is not None) != (self.phase is Phase.RESULT):
            raise ValueError("result must be set exactly when phase is RESULT")
        if (self.error_message is not None) != (self.phase is Phase.FAILED):
            raise ValueError("error_message must be set exactly when phase is FAILED")
        return self

    @classmethod
    def idle(cls) -> "InteractionState":
        return cls(phase=Phase.IDLE)

    @classmethod
    def loading(cls) -> "InteractionState":
        return cls(phase=Phase.LOADING)

    @classmethod
    def succeeded(cls, data: ExhibitData) -> "InteractionState":
        return cls(phase=Phase.RESULT, result=data)

    @classmethod
    def failed(cls, message: str) -> "InteractionState":
        return cls(phase=Phase.FAILED, error_message=message)

    @property
    def is_loading(self) -> bool:
        return self.phase is Phase.LOADING

    @property
    def form_visible(self) -> bool:
        """The form is editable in IDLE and alongside the FAILED banner."""
        return self.phase in (Phase.IDLE, Phase.FAILED)
