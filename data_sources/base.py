from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional

from models import Commit, QueryFailure


class DataSource(ABC):
    """
    [V5.0] 数据源抽象基类
    定义了按时间范围获取提交的标准接口，聚合引擎只依赖此接口。
    """

    # 最近一次查询的失败原因 (None 表示成功)，仅用于内部诊断
    last_failure: Optional[QueryFailure] = None

    @abstractmethod
    def validate(self) -> bool:
        """
        验证数据源是否可用。
        例如：本地路径是否存在且为 Git 仓库。
        """
        pass

    @abstractmethod
    def get_commits(
        self,
        query_start: datetime,
        query_end: datetime,
        accept: Optional[Callable[[Commit], bool]] = None,
    ) -> List[Commit]:
        """
        获取查询范围内的提交 (含统计信息)。
        失败时返回空列表并设置 last_failure，不抛出异常。
        """
        pass
