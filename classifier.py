# classifier.py
"""
提交分类器：根据提交标题前缀判断类别。
纯函数，无副作用。
"""
from typing import List, Tuple

from models import Category

# 按优先级排列，首个匹配的前缀生效
CATEGORY_PREFIXES: List[Tuple[str, Category]] = [
    ("merge ", Category.MERGE),
    ("fix", Category.FIX),
    ("feat", Category.FEATURE),
    ("refactor", Category.REFACTOR),
    ("docs", Category.DOCS),
    ("style", Category.STYLE),
]

MERGE_PREFIXES = ("merge branch", "merge ")


def _normalize(title: str) -> str:
    return (title or "").strip().lower()


def classify(title: str) -> Category:
    """根据标题判断提交类别，未匹配返回 Category.DEFAULT"""
    normalized = _normalize(title)
    for prefix, category in CATEGORY_PREFIXES:
        if normalized.startswith(prefix):
            return category
    return Category.DEFAULT


def is_merge_commit(title: str) -> bool:
    """标题以 'merge branch' 或 'merge ' 开头即视为合并提交"""
    return _normalize(title).startswith(MERGE_PREFIXES)
