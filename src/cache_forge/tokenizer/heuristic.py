"""
零依赖的启发式 Token 计数器。

WordHeuristicCounter 是默认计数器：
- 每个空白分隔的词约 1.3 Token
- 每个中日韩字符约 1 Token（这些字符之间通常没有空白）
- 每个标点约 0.3 Token（BPE 往往把标点拆成独立 Token）

CharRatioCounter 采用 `字符数 / 比率` 的粗估，比率随 CJK 字符密度在 4.0 与 1.5 之间插值。
"""

from __future__ import annotations

import math
import re

_CJK_PATTERN = re.compile(
    r"[\u4e00-\u9fff\u3400-\u4dbf\uf900-\ufaff"
    r"\u3040-\u30ff\uac00-\ud7af"
    r"\u3000-\u303f\uff00-\uffef]"
)
_PUNCTUATION_PATTERN = re.compile(r"[.,!?;:()\[\]{}\"'`<>/\\|@#$%^&*+=~-]")

WORD_WEIGHT = 1.3
CJK_WEIGHT = 1.0
PUNCTUATION_WEIGHT = 0.3


class WordHeuristicCounter:
    """
    基于词数与标点数的 Token 估算器。

    用法::

        counter = WordHeuristicCounter()
        counter.count("Hello, world!")  # ceil(2 × 1.3 + 2 × 0.3) = 4
    """

    def count(self, text: str) -> int:
        if not text:
            return 0
        cjk_chars = len(_CJK_PATTERN.findall(text))
        # CJK 字符单独计数，剩余部分按空白切词
        latin = _CJK_PATTERN.sub(" ", text) if cjk_chars else text
        words = len(latin.split())
        punctuation = len(_PUNCTUATION_PATTERN.findall(text))
        estimate = words * WORD_WEIGHT + cjk_chars * CJK_WEIGHT + punctuation * PUNCTUATION_WEIGHT
        return math.ceil(estimate)

    @property
    def name(self) -> str:
        return "heuristic"


class CharRatioCounter:
    """
    基于字符数的 Token 粗估计数器。

    参数:
        chars_per_token: 固定的字符/Token 比率。None 时按 CJK 密度自动估算。
    """

    def __init__(self, chars_per_token: float | None = None) -> None:
        if chars_per_token is not None and chars_per_token <= 0:
            raise ValueError(f"chars_per_token 必须为正数，实际为 {chars_per_token}。")
        self._fixed_ratio = chars_per_token

    def _ratio(self, text: str) -> float:
        if self._fixed_ratio is not None:
            return self._fixed_ratio
        cjk_ratio = len(_CJK_PATTERN.findall(text)) / len(text)
        # 纯英文 ≈ 4.0，纯中文 ≈ 1.5
        return 4.0 - (cjk_ratio * 2.5)

    def count(self, text: str) -> int:
        if not text:
            return 0
        return max(1, int(len(text) / self._ratio(text)))

    @property
    def name(self) -> str:
        if self._fixed_ratio is not None:
            return f"chars:{self._fixed_ratio}"
        return "chars:auto"
