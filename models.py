# models.py
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Granularity(str, Enum):
    """时间线视图粒度"""

    DAY = "day"
    WEEK = "week"


class Direction(str, Enum):
    """窗口导航方向"""

    PREVIOUS = "previous"
    NEXT = "next"


class Category(str, Enum):
    """提交分类 (用于展示分组/着色以及合并提交过滤)"""

    MERGE = "merge"
    FIX = "fix"
    FEATURE = "feature"
    REFACTOR = "refactor"
    DOCS = "docs"
    STYLE = "style"
    DEFAULT = "default"


class QueryFailure(str, Enum):
    """数据源内部失败信号，对外仍表现为空结果"""

    NOT_A_REPOSITORY = "not_a_repository"
    EXECUTION_FAILED = "execution_failed"


@dataclass(frozen=True)
class Commit:
    """Git提交数据模型 (按作者时间)"""

    hash: str
    author: str
    author_date: datetime
    title: str
    message: str
    file_count: int = 0
    insertions: int = 0
    deletions: int = 0

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    @property
    def category(self) -> Category:
        from classifier import classify

        return classify(self.title)

    @property
    def is_merge_commit(self) -> bool:
        from classifier import is_merge_commit

        return is_merge_commit(self.title)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "author": self.author,
            "author_date": self.author_date.isoformat(),
            "title": self.title,
            "message": self.message,
            "category": self.category.value,
            "file_count": self.file_count,
            "insertions": self.insertions,
            "deletions": self.deletions,
        }


@dataclass(frozen=True)
class Window:
    """
    时间窗口，起止均为闭区间。
    start 为首日 00:00:00.000，end 为末日 23:59:59.999。
    """

    granularity: Granularity
    start: datetime
    end: datetime

    @property
    def reference_date(self) -> date:
        return self.start.date()

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end

    @property
    def label(self) -> str:
        if self.granularity == Granularity.DAY:
            return self.start.strftime("%Y-%m-%d")
        iso_year, iso_week, _ = self.start.isocalendar()
        return (
            f"{iso_year}-W{iso_week:02d} "
            f"({self.start.strftime('%Y-%m-%d')} ~ {self.end.strftime('%Y-%m-%d')})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "granularity": self.granularity.value,
            "start": self.start.isoformat(timespec="milliseconds"),
            "end": self.end.isoformat(timespec="milliseconds"),
            "label": self.label,
        }


@dataclass
class AuthorGroup:
    """按作者聚合的提交 (提交按作者时间升序)"""

    author: str
    commits: List[Commit] = field(default_factory=list)

    @property
    def commit_count(self) -> int:
        return len(self.commits)

    @property
    def file_count(self) -> int:
        return sum(c.file_count for c in self.commits)

    @property
    def insertions(self) -> int:
        return sum(c.insertions for c in self.commits)

    @property
    def deletions(self) -> int:
        return sum(c.deletions for c in self.commits)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "author": self.author,
            "commit_count": self.commit_count,
            "file_count": self.file_count,
            "insertions": self.insertions,
            "deletions": self.deletions,
            "commits": [c.to_dict() for c in self.commits],
        }


@dataclass
class TimelineView:
    """交给展示层的完整数据：当前窗口、相邻窗口与作者分组"""

    repo_path: str
    window: Window
    previous_window: Window
    next_window: Window
    groups: List[AuthorGroup] = field(default_factory=list)
    failure: Optional[QueryFailure] = None

    @property
    def total_commits(self) -> int:
        return sum(g.commit_count for g in self.groups)

    @property
    def total_files(self) -> int:
        return sum(g.file_count for g in self.groups)

    @property
    def total_insertions(self) -> int:
        return sum(g.insertions for g in self.groups)

    @property
    def total_deletions(self) -> int:
        return sum(g.deletions for g in self.groups)

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repo_path": self.repo_path,
            "window": self.window.to_dict(),
            "previous_window": self.previous_window.to_dict(),
            "next_window": self.next_window.to_dict(),
            "totals": {
                "commits": self.total_commits,
                "files": self.total_files,
                "insertions": self.total_insertions,
                "deletions": self.total_deletions,
            },
            "groups": [g.to_dict() for g in self.groups],
        }
