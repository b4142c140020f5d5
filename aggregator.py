# aggregator.py
"""
[V5.0] 提交聚合引擎
1. 放宽查询范围 (git 按提交时间过滤)
2. 按作者时间精确过滤到窗口内
3. 按作者时间升序排序，按作者分组并汇总统计
"""
import logging
from datetime import datetime, timedelta, tzinfo
from typing import Dict, List, Optional, Tuple

from config import GlobalConfig
from data_sources.base import DataSource
from data_sources.local_git import LocalGitDataSource
from models import AuthorGroup, Commit, Direction, Granularity, TimelineView, Window
from window import adjacent_window

logger = logging.getLogger(__name__)


def widen_range(window: Window, global_config: GlobalConfig) -> Tuple[datetime, datetime]:
    """计算放宽后的查询范围 (往前多取，往后少取)"""
    if window.granularity == Granularity.WEEK:
        behind = global_config.WEEK_LOOKBEHIND_DAYS
        ahead = global_config.WEEK_LOOKAHEAD_DAYS
    else:
        behind = global_config.DAY_LOOKBEHIND_DAYS
        ahead = global_config.DAY_LOOKAHEAD_DAYS
    return window.start - timedelta(days=behind), window.end + timedelta(days=ahead)


def select_in_window(commits: List[Commit], window: Window) -> List[Commit]:
    """保留作者时间落在窗口内 (含边界) 的提交，并按作者时间稳定升序排序"""
    selected = [c for c in commits if window.contains(c.author_date)]
    return sorted(selected, key=lambda c: c.author_date)


def group_by_author(commits: List[Commit]) -> List[AuthorGroup]:
    """按作者名分组，分组顺序为作者首次出现的顺序"""
    groups: Dict[str, AuthorGroup] = {}
    for commit in commits:
        groups.setdefault(commit.author, AuthorGroup(author=commit.author)).commits.append(
            commit
        )
    return list(groups.values())


def aggregate(
    repo_root: str,
    window: Window,
    global_config: Optional[GlobalConfig] = None,
    data_source: Optional[DataSource] = None,
    hide_merges: bool = False,
) -> List[AuthorGroup]:
    """
    聚合窗口内每位作者的提交。
    空仓库、非仓库或查询失败均返回空列表。
    """
    cfg = global_config or GlobalConfig()
    source = data_source or LocalGitDataSource(repo_root, cfg)

    query_start, query_end = widen_range(window, cfg)
    logger.info(
        f"🔍 查询范围 {query_start.isoformat()} ~ {query_end.isoformat()} "
        f"(窗口 {window.label})"
    )
    candidates = source.get_commits(
        query_start, query_end, accept=lambda c: window.contains(c.author_date)
    )

    commits = select_in_window(candidates, window)
    if hide_merges:
        commits = [c for c in commits if not c.is_merge_commit]

    groups = group_by_author(commits)
    logger.info(f"✅ 窗口 {window.label}: {len(commits)} 个提交, {len(groups)} 位作者")
    return groups


def build_timeline(
    repo_root: str,
    window: Window,
    global_config: Optional[GlobalConfig] = None,
    data_source: Optional[DataSource] = None,
    hide_merges: bool = False,
    tz: Optional[tzinfo] = None,
) -> TimelineView:
    """组装展示层所需的数据：分组结果 + 当前窗口 + 相邻窗口"""
    cfg = global_config or GlobalConfig()
    source = data_source or LocalGitDataSource(repo_root, cfg)
    groups = aggregate(repo_root, window, cfg, source, hide_merges)
    return TimelineView(
        repo_path=repo_root,
        window=window,
        previous_window=adjacent_window(window, Direction.PREVIOUS, tz),
        next_window=adjacent_window(window, Direction.NEXT, tz),
        groups=groups,
        failure=source.last_failure,
    )
