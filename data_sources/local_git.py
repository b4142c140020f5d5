import logging
import os
from datetime import datetime
from typing import Callable, List, Optional

from .base import DataSource
from config import GlobalConfig
from models import Commit, QueryFailure
import git_utils

logger = logging.getLogger(__name__)


class LocalGitDataSource(DataSource):
    """
    本地 Git 数据源实现。
    通过调用 git 命令行工具读取本地仓库的全部分支。
    """

    def __init__(self, repo_path: str, global_config: Optional[GlobalConfig] = None):
        self.repo_path = repo_path
        self.global_config = global_config or GlobalConfig()
        self.last_failure: Optional[QueryFailure] = None

    def validate(self) -> bool:
        if not os.path.isdir(self.repo_path):
            logger.error(f"❌ 路径不存在: {self.repo_path}")
            return False
        if not git_utils.is_git_repository(self.repo_path, self.global_config):
            logger.error(f"❌ 指定路径不是 Git 仓库: {self.repo_path}")
            return False
        return True

    def get_commits(
        self,
        query_start: datetime,
        query_end: datetime,
        accept: Optional[Callable[[Commit], bool]] = None,
    ) -> List[Commit]:
        self.last_failure = None
        if not self.validate():
            self.last_failure = QueryFailure.NOT_A_REPOSITORY
            return []

        log_output = git_utils.get_git_log(
            self.repo_path, query_start, query_end, self.global_config
        )
        if log_output is None:
            self.last_failure = QueryFailure.EXECUTION_FAILED
            return []

        commits = git_utils.build_commits(
            self.repo_path, log_output, self.global_config, accept
        )
        logger.info(f"🔌 [DataSource] 已获取 {len(commits)} 个提交 (含统计信息)")
        return commits
