"""Display copy and helper functions for the exhibit page."""

import time

LOADING_MESSAGES = (
    "飼育員が観察記録をまとめています...",
    "生態調査チームが聞き込み中...",
    "学名をラテン語で考えています...",
    "危険度を慎重に判定しています...",
    "看板職人がペンキを塗っています...",
)

STAT_LABELS = {
    "stamina": "体力 (STAMINA)",
    "intelligence": "知能 (INTELLIGENCE)",
    "laziness": "怠惰さ (LAZINESS)",
    "charm": "愛嬌 (CHARM)",
}

INPUT_PLACEHOLDERS = {
    "name": "例：山田 太郎",
    "hobby": "例：休日は一日中ゲーム、辛いものが大好き",
    "worry": "例：最近、朝起きられずに二度寝を繰り返している",
}

GENERATION_ERROR_MESSAGE = "飼育データの解析に失敗しました。時間をおいて再度お試しください。"
EXPORT_ERROR_MESSAGE = "画像の保存に失敗しました。"

EXPORT_LABEL = "🖼️ 解説看板を画像として保存"
EXPORT_BUSY_LABEL = "🎨 書き出し中..."
SUBMIT_LABEL = "看板をデザインする"
RESET_LABEL = "別の看板を作る"

DANGER_LEVEL_PREFIX = "危険度："
DESCRIPTION_HEADING = "飼育員による解説"
FUN_FACT_HEADING = "豆知識"


def format_danger_level(danger_level: str) -> str:
    """Prefix the danger level with its Japanese caption.

    Args:
        danger_level: Severity label from the generated data.

    Returns:
        Caption text shown in the signboard header.
    """
    return f"{DANGER_LEVEL_PREFIX}{danger_level}"


def split_description(description: str) -> list[str]:
    """Split description text into display lines, keeping blank lines.

    Args:
        description: Narrative text that may contain line breaks.

    Returns:
        Lines in order; blank lines mark paragraph gaps.
    """
    return description.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def exhibit_file_name(now: float | None = None) -> str:
    """Build the suggested file name for an exported signboard.

    Args:
        now: Epoch seconds to stamp the name with. Defaults to the current time.

    Returns:
        File name like ``zoo_exhibit_1700000000000.png``.
    """
    stamp = time.time() if now is None else now
    return f"zoo_exhibit_{int(stamp * 1000)}.png"
