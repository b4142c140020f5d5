# orchestrator.py
"""
[V5.0] 业务逻辑编排器
- 持有一个可导航视图的 ViewState (替代全局的"当前天/当前周"状态)
- 聚合 -> 渲染 -> 输出 (终端 / 文件 / 浏览器)
"""
import logging
from typing import Callable, Optional

from aggregator import build_timeline
from context import RunContext
from data_sources.base import DataSource
from data_sources.local_git import LocalGitDataSource
from models import Direction, Granularity, TimelineView
import report_builder
import utils
from window import load_timezone

logger = logging.getLogger(__name__)

FORMAT_EXTENSIONS = {"html": "html", "json": "json", "text": "txt"}

INTERACTIVE_PROMPT = "[p] 上一个  [n] 下一个  [t] 今天  [d] 天视图  [w] 周视图  [q] 退出 > "


class TimelineOrchestrator:
    """
    负责执行时间线生成的核心业务流程。
    """

    def __init__(self, context: RunContext, data_source: Optional[DataSource] = None):
        self.context = context
        self.global_config = context.global_config
        self.tz = load_timezone(self.global_config.TIMEZONE)
        self.data_source = data_source or LocalGitDataSource(
            context.repo_path, self.global_config
        )
        logger.info("✅ TimelineOrchestrator 已初始化")

    # --- 视图导航 ---

    def navigate(self, direction: Direction, steps: int = 1):
        self.context.view = self.context.view.navigate(direction, steps)

    def jump_to_today(self):
        self.context.view = self.context.view.today(self.tz)

    def switch_granularity(self, granularity: Granularity):
        self.context.view = self.context.view.with_granularity(granularity)

    # --- 数据与渲染 ---

    def build_view(self) -> TimelineView:
        window = self.context.view.resolve(self.tz)
        return build_timeline(
            self.context.repo_path,
            window,
            self.global_config,
            self.data_source,
            hide_merges=self.context.hide_merges,
            tz=self.tz,
        )

    def render(self, view: TimelineView, output_format: Optional[str] = None) -> str:
        return report_builder.render_report(
            view, output_format or self.context.output_format, self.global_config
        )

    def run(self) -> TimelineView:
        """
        执行一次：聚合当前窗口并按输出格式输出。
        """
        if self.context.interactive:
            return self.run_interactive()

        view = self.build_view()
        if view.is_empty:
            logger.warning(f"⚠️ 窗口 {view.window.label} 内没有提交")
        self._emit(view)
        return view

    def run_interactive(self, input_func: Callable[[str], str] = input) -> TimelineView:
        """
        交互式导航。每次只渲染最新的窗口，旧结果直接丢弃。
        """
        view = self.build_view()
        print(report_builder.generate_text_report(view))
        while True:
            try:
                choice = input_func(INTERACTIVE_PROMPT).strip().lower()
            except (EOFError, KeyboardInterrupt):
                break
            if choice in ("q", "quit", "exit"):
                break
            if choice == "p":
                self.navigate(Direction.PREVIOUS)
            elif choice == "n":
                self.navigate(Direction.NEXT)
            elif choice == "t":
                self.jump_to_today()
            elif choice == "d":
                self.switch_granularity(Granularity.DAY)
            elif choice == "w":
                self.switch_granularity(Granularity.WEEK)
            else:
                print(f"未知选项: {choice!r}")
                continue
            view = self.build_view()
            print(report_builder.generate_text_report(view))
        return view

    def _emit(self, view: TimelineView):
        output_format = self.context.output_format
        content = self.render(view, output_format)

        # 文本与 JSON 未指定输出路径时直接打印
        if output_format != "html" and not self.context.output_path:
            print(content)
            return

        saved_path = report_builder.save_report(
            content, self.context, FORMAT_EXTENSIONS[output_format]
        )
        if not saved_path:
            logger.error("❌ 报告文件生成失败。")
            return
        if output_format == "html" and not self.context.no_browser:
            utils.open_report_in_browser(saved_path)
