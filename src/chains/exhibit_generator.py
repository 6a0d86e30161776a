"""Exhibit signboard generation chain."""

import logging
from typing import Annotated, Any

from langchain_core.output_parsers import JsonOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_vertexai import ChatVertexAI
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from src.llm import get_llm

logger = logging.getLogger(__name__)

StatValue = Annotated[StrictInt, Field(ge=0, le=100)]


class GenerationError(Exception):
    """Raised when an exhibit could not be generated.

    Transport failures, unparseable output and schema violations all surface
    as this one error. The original cause is chained as ``__cause__``.
    """


class UserInput(BaseModel):
    """Free-text input describing the person to put on exhibit."""

    name: str = Field(default="", description="展示名（お名前）")
    hobby: str = Field(default="", description="生態的特徴（特技・趣味・好きなもの）")
    worry: str = Field(default="", description="最近観測された行動（悩み・近況）")

    @property
    def is_complete(self) -> bool:
        """Whether every field has non-blank text."""
        return all(value.strip() for value in (self.name, self.hobby, self.worry))


class ExhibitStats(BaseModel):
    """Percentage stats shown as bars on the signboard."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    stamina: StatValue = Field(description="体力（0-100の整数）")
    intelligence: StatValue = Field(description="知能（0-100の整数）")
    laziness: StatValue = Field(description="怠惰さ（0-100の整数）")
    charm: StatValue = Field(description="愛嬌（0-100の整数）")


class ExhibitData(BaseModel):
    """Structured signboard content returned by the model."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    classification: str = Field(min_length=1, description="分類（短いカテゴリ名）")
    danger_level: str = Field(
        alias="dangerLevel", min_length=1, description="危険度（短い表現）"
    )
    scientific_name: str = Field(
        alias="scientificName", min_length=1, description="それらしいラテン語風の学名"
    )
    description: str = Field(min_length=1, description="飼育員による解説（改行可）")
    stats: ExhibitStats = Field(description="ステータス")
    fun_fact: str = Field(alias="funFact", min_length=1, description="豆知識")


SYSTEM_PROMPT = """あなたは動物園のベテラン飼育員であり、解説看板のコピーライターです。

## タスク
来園者から提供された「ある人物」の情報をもとに、その人物が動物園で飼育・展示されていると仮定した
公式の解説看板を作成してください。

## ルール
- 実在の動物図鑑のような真面目な文体で、内容はユーモラスにする
- 人物を傷つける表現、差別的な表現は使わない
- classification は「霊長目ヒト科」のような短い分類名
- dangerLevel は「★★☆☆☆（甘いものを見ると豹変）」のような短い表現
- scientificName はラテン語風の架空の学名
- description は飼育員目線の解説（200〜300文字、段落の区切りは改行で表す）
- stats の各値は 0〜100 の整数
- funFact は来園者が思わず誰かに話したくなる短い豆知識

## 出力形式
以下のJSON形式のみで出力してください：
{format_instructions}"""

USER_PROMPT = """## 展示対象の情報
展示名: {name}
生態的特徴: {hobby}
最近観測された行動: {worry}

上記の人物の解説看板を作成してください。"""


class ExhibitGeneratorChain:
    """Chain that turns a UserInput into validated ExhibitData."""

    def __init__(self, llm: ChatVertexAI | None = None):
        """Initialize the exhibit generator chain.

        Args:
            llm: Optional ChatVertexAI instance. Creates one if not provided.
        """
        self.llm = llm or get_llm()
        self.parser = JsonOutputParser(pydantic_object=ExhibitData)
        self.prompt = ChatPromptTemplate.from_messages(
            [
                ("system", SYSTEM_PROMPT),
                ("human", USER_PROMPT),
            ]
        )
        self.chain = self.prompt | self.llm | self.parser

    def _prompt_inputs(self, user_input: UserInput) -> dict[str, Any]:
        return {
            "name": user_input.name.strip(),
            "hobby": user_input.hobby.strip(),
            "worry": user_input.worry.strip(),
            "format_instructions": self.parser.get_format_instructions(),
        }

    async def agenerate(self, user_input: UserInput) -> ExhibitData:
        """Generate signboard content for the given input.

        Args:
            user_input: Name, hobby and worry of the person to exhibit.

        Returns:
            Validated ExhibitData.

        Raises:
            GenerationError: On transport failure, unparseable output, or a
                payload that violates the ExhibitData schema.
        """
        try:
            result = await self.chain.ainvoke(self._prompt_inputs(user_input))
        except Exception as e:
            logger.warning(f"Exhibit generation request failed: {e}")
            raise GenerationError("exhibit generation request failed") from e

        return parse_exhibit_payload(result)


def parse_exhibit_payload(payload: Any) -> ExhibitData:
    """Validate a raw model payload as ExhibitData.

    Args:
        payload: Parsed JSON returned by the model.

    Returns:
        Validated ExhibitData.

    Raises:
        GenerationError: If the payload is not an object or violates the schema.
    """
    if not isinstance(payload, dict):
        logger.warning(f"Exhibit payload is not an object: {type(payload).__name__}")
        raise GenerationError("exhibit payload is not a JSON object")

    try:
        return ExhibitData.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Exhibit payload failed validation: {e.error_count()} error(s)")
        raise GenerationError("exhibit payload failed validation") from e
