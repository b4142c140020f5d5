# context.py
"""
运行时配置与视图状态的数据模型
"""
from dataclasses import dataclass, field, replace
from datetime import date, timedelta, tzinfo
from typing import Optional

from config import GlobalConfig
from models import Direction, Granularity, Window
from window import NAVIGATION_STEP_DAYS, current_date, resolve_window


@dataclass(frozen=True)
class ViewState:
    """
    一个可导航视图的会话状态：粒度 + 参考日期。
    由调用方持有，每次聚合请求时传入，不存在全局状态。
    """

    granularity: Granularity
    reference_date: date

    def resolve(self, tz: Optional[tzinfo] = None) -> Window:
        return resolve_window(self.reference_date, self.granularity, tz)

    def navigate(self, direction: Direction, steps: int = 1) -> "ViewState":
        delta = NAVIGATION_STEP_DAYS[self.granularity] * steps
        if Direction(direction) == Direction.PREVIOUS:
            delta = -delta
        return replace(self, reference_date=self.reference_date + timedelta(days=delta))

    def with_granularity(self, granularity: Granularity) -> "ViewState":
        return replace(self, granularity=Granularity(granularity))

    def today(self, tz: Optional[tzinfo] = None) -> "ViewState":
        return replace(self, reference_date=current_date(tz))


@dataclass
class RunContext:
    """
    封装一次运行所需的所有配置和状态。
    这是从 CLI 传递到 Orchestrator 的唯一对象。
    """

    # --- 核心路径 ---
    repo_path: str
    project_data_path: str

    # --- 视图参数 ---
    view: ViewState
    output_format: str = "text"
    output_path: Optional[str] = None

    # --- 标志 ---
    hide_merges: bool = False
    interactive: bool = False
    no_browser: bool = False

    # --- 全局配置 ---
    global_config: GlobalConfig = field(default_factory=GlobalConfig)
