# cli.py
"""
命令行界面 (Interface) 层
负责参数解析、配置合并 (CLI > 项目 config.json > GlobalConfig) 与 RunContext 组装。
"""
import argparse
import logging
import os
import sys
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import config_manager
from config import GlobalConfig
from context import RunContext, ViewState
from models import Direction, Granularity
from window import current_date, load_timezone
from orchestrator import TimelineOrchestrator
import utils

logger = logging.getLogger(__name__)


def parse_date(value: str) -> date:
    """argparse 类型：YYYY-MM-DD"""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"日期格式应为 YYYY-MM-DD: {value!r}")


def setup_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="TeamWorks 团队工作时间线 (按作者时间统计每日/每周提交)",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--configure",
        action="store_true",
        help="运行交互式配置向导。\n   (需要 -r 指定要配置的仓库路径)",
    )
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="运行交互式项目清理向导。\n   (需要 -p 或 -r 指定清理目标)",
    )

    parser.add_argument(
        "-p", "--project", type=str, help="使用已配置的项目别名。\n   (与 -r 互斥)"
    )
    parser.add_argument(
        "-r", "--repo-path", type=str, default=None, help="Git 仓库的根目录路径。"
    )

    # --- 视图模式 ---
    view_group = parser.add_mutually_exclusive_group()
    view_group.add_argument(
        "--day",
        dest="view",
        action="store_const",
        const="day",
        help="天视图 (默认: 项目配置或 TEAMWORKS_DEFAULT_VIEW)",
    )
    view_group.add_argument(
        "--week", dest="view", action="store_const", const="week", help="周视图 (ISO 周，周一开始)"
    )

    parser.add_argument(
        "-d",
        "--date",
        type=parse_date,
        default=None,
        help="参考日期 YYYY-MM-DD (默认: 今天)",
    )
    parser.add_argument(
        "-s",
        "--shift",
        type=int,
        default=0,
        help="从参考日期所在窗口起导航 N 个窗口。\n负数向前 (例如 -1 表示昨天/上周)",
    )
    parser.add_argument(
        "-f",
        "--format",
        type=str,
        choices=GlobalConfig.OUTPUT_FORMATS,
        default=None,
        help="输出格式 (默认: 项目配置或 text)",
    )
    parser.add_argument(
        "-o", "--output", type=str, default=None, help="输出文件路径 (默认: data/<项目>/)"
    )
    parser.add_argument(
        "--hide-merges", action="store_true", default=None, help="隐藏合并提交"
    )
    parser.add_argument(
        "-i", "--interactive", action="store_true", help="交互式导航 (上一个/下一个)"
    )
    parser.add_argument(
        "--no-browser", action="store_true", help="不自动在浏览器中打开 HTML 报告"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")

    return parser


def resolve_repo(
    args: argparse.Namespace, data_root_path: str
) -> Tuple[Optional[str], Optional[str]]:
    """根据 -p / -r 确定 (仓库路径, 别名)，失败时返回 (None, None)"""
    if args.project and args.repo_path:
        logger.error("❌ 不能同时使用 -p (别名) 和 -r (路径)。请只选其一。")
        return None, None
    if args.project:
        repo_path = config_manager.get_path_from_alias(data_root_path, args.project)
        if not repo_path:
            logger.error(f"❌ 别名 '{args.project}' 未在 projects.json 中找到。")
            logger.error("   请先使用 --configure -r ... 来配置它。")
            return None, None
        logger.info(f"ℹ️ 使用别名 '{args.project}' (路径: {repo_path})")
        return repo_path, args.project
    if args.repo_path:
        return os.path.abspath(args.repo_path), None
    logger.error("❌ 必须提供 -p (项目别名) 或 -r (仓库路径) 之一。")
    return None, None


def build_context(
    args: argparse.Namespace,
    global_config: GlobalConfig,
    repo_path: str,
    project_data_path: str,
    project_config: Dict[str, Any],
) -> RunContext:
    """合并 CLI 参数、项目配置和全局配置"""
    view_name = (
        args.view or project_config.get("default_view") or global_config.DEFAULT_VIEW
    )
    if view_name not in (g.value for g in Granularity):
        logger.warning(f"⚠️ 未知视图 {view_name!r}，使用天视图")
        view_name = Granularity.DAY.value

    view = ViewState(
        granularity=Granularity(view_name),
        reference_date=args.date or current_date(load_timezone(global_config.TIMEZONE)),
    )
    if args.shift:
        direction = Direction.NEXT if args.shift > 0 else Direction.PREVIOUS
        view = view.navigate(direction, abs(args.shift))

    output_format = args.format or project_config.get("default_format") or "text"
    if output_format not in global_config.OUTPUT_FORMATS:
        output_format = "text"

    hide_merges = args.hide_merges
    if hide_merges is None:
        hide_merges = bool(project_config.get("hide_merges", False))

    output_path = args.output
    if args.interactive:
        # 交互模式只在终端输出文本
        if (args.format and args.format != "text") or output_path:
            logger.warning("⚠️ 交互模式只输出文本到终端，已忽略 -f/--format 与 -o/--output")
        output_format, output_path = "text", None

    return RunContext(
        repo_path=repo_path,
        project_data_path=project_data_path,
        view=view,
        output_format=output_format,
        output_path=output_path,
        hide_merges=hide_merges,
        interactive=args.interactive,
        no_browser=args.no_browser,
        global_config=global_config,
    )


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    主入口点，返回进程退出码。
    """
    parser = setup_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        utils.setup_logging(logging.DEBUG)

    global_config = GlobalConfig()
    data_root_path = global_config.DATA_ROOT_PATH

    # 特殊模式：--configure
    if args.configure:
        if not args.repo_path:
            logger.error("❌ --configure 标志需要 -r / --repo-path 指定目标仓库路径。")
            return 1
        logger.info(f"⚙️ 启动交互式配置向导: {args.repo_path}")
        alias = config_manager.run_interactive_config_wizard(
            data_root_path, args.repo_path
        )
        return 0 if alias else 1

    repo_path, alias = resolve_repo(args, data_root_path)
    if not repo_path:
        return 1

    project_data_path = config_manager.get_project_data_path(data_root_path, repo_path)
    project_config = config_manager.load_project_config(project_data_path)

    # 特殊模式：--cleanup
    if args.cleanup:
        logger.info(f"🧹 启动清理向导: {repo_path}")
        config_manager.run_interactive_cleanup_wizard(
            data_root_path,
            project_data_path,
            alias,
            global_config.OUTPUT_FILENAME_PREFIX,
        )
        return 0

    run_context = build_context(
        args, global_config, repo_path, project_data_path, project_config
    )

    logger.info("=" * 50)
    logger.info("🚀 TeamWorks 启动...")
    logger.info(f"   [目标仓库]: {repo_path}")
    logger.info(
        f"   [视图]: {run_context.view.granularity.value} @ {run_context.view.reference_date}"
    )
    logger.info(f"   [输出格式]: {run_context.output_format}")
    logger.info("=" * 50)

    orchestrator = TimelineOrchestrator(run_context)
    orchestrator.run()
    logger.info("✅ TimelineOrchestrator 运行完毕。")
    return 0


def main():
    """console_scripts 入口"""
    utils.setup_logging()
    try:
        sys.exit(run_cli())
    except Exception as e:
        logger.error(f"❌ 发生未处理的全局异常: {e}", exc_info=True)
        sys.exit(1)
