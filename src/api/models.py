"""API request and response models."""

from pydantic import BaseModel, Field, field_validator

from src.chains.exhibit_generator import ExhibitData, UserInput


class GenerateRequest(BaseModel):
    """Request model for exhibit generation."""

    name: str = Field(min_length=1, description="展示名（お名前）")
    hobby: str = Field(min_length=1, description="生態的特徴（特技・趣味・好きなもの）")
    worry: str = Field(min_length=1, description="最近観測された行動（悩み・近況）")

    @field_validator("name", "hobby", "worry")
    @classmethod
    def not_blank(cls, value: str) -> str:
        """Reject whitespace-only text."""
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_user_input(self) -> UserInput:
        return UserInput(name=self.name, hobby=self.hobby, worry=self.worry)


class GenerateResponse(ExhibitData):
    """Response model for exhibit generation (camelCase keys)."""


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(description="エラータイプ")
    detail: str = Field(description="エラー詳細")
