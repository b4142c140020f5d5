# report_builder.py
"""
[V5.0] 时间线报告生成器
- 文本：终端输出
- HTML：Jinja2 模板渲染，提交正文经 Markdown 转换
- JSON：纯数据，交给外部展示层
"""
import html
import json
import logging
import os
from datetime import datetime
from typing import Optional

import markdown
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import GlobalConfig
from context import RunContext
from models import Category, Commit, QueryFailure, TimelineView

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    Category.MERGE: "合并",
    Category.FIX: "修复",
    Category.FEATURE: "功能",
    Category.REFACTOR: "重构",
    Category.DOCS: "文档",
    Category.STYLE: "样式",
    Category.DEFAULT: "其他",
}

CATEGORY_COLORS = {
    Category.MERGE: "#a371f7",
    Category.FIX: "#f85149",
    Category.FEATURE: "#3fb950",
    Category.REFACTOR: "#d29922",
    Category.DOCS: "#58a6ff",
    Category.STYLE: "#db61a2",
    Category.DEFAULT: "#8b949e",
}

FAILURE_HINTS = {
    QueryFailure.NOT_A_REPOSITORY: "目标路径不是 Git 仓库",
    QueryFailure.EXECUTION_FAILED: "Git 查询执行失败，详见日志",
}

VIEW_TITLES = {
    "day": "团队工作情况（天视图）",
    "week": "团队工作情况（周视图）",
}


def _format_stats(file_count: int, insertions: int, deletions: int) -> str:
    return f"+{insertions} -{deletions} ({file_count} 个文件)"


def _format_commit_line(commit: Commit) -> str:
    category = CATEGORY_LABELS[commit.category]
    return (
        f"  {commit.author_date.strftime('%m-%d %H:%M')}  {commit.short_hash}  "
        f"[{category}] {commit.title}  "
        f"{_format_stats(commit.file_count, commit.insertions, commit.deletions)}"
    )


def generate_text_report(view: TimelineView) -> str:
    """生成纯文本格式的时间线 (用于终端输出)"""
    title = VIEW_TITLES[view.window.granularity.value]
    lines = [
        "=" * 80,
        f"{title:^80}",
        "=" * 80,
        f"窗口: {view.window.label}",
        f"仓库: {view.repo_path}",
        f"上一个: {view.previous_window.label}    下一个: {view.next_window.label}",
        f"提交数量: {view.total_commits}    作者数量: {len(view.groups)}",
        f"代码变更: {_format_stats(view.total_files, view.total_insertions, view.total_deletions)}",
        "",
    ]
    if view.is_empty:
        lines.append("⚠️  该时间段暂无提交")
        if view.failure:
            lines.append(f"   ({FAILURE_HINTS[view.failure]})")
    for group in view.groups:
        lines.append(
            f"作者: {group.author} ({group.commit_count} 个提交, "
            f"{_format_stats(group.file_count, group.insertions, group.deletions)})"
        )
        lines.append("-" * 80)
        lines.extend(_format_commit_line(c) for c in group.commits)
        lines.append("")
    lines.append("=" * 80)
    return "\n".join(lines)


def generate_json_report(view: TimelineView) -> str:
    """把时间线数据序列化为 JSON"""
    return json.dumps(view.to_dict(), ensure_ascii=False, indent=2)


def _get_css_styles(global_config: GlobalConfig) -> str:
    """读取 CSS 文件内容"""
    css_path = os.path.join(
        global_config.SCRIPT_BASE_PATH,
        global_config.TEMPLATES_DIR_NAME,
        global_config.CSS_FILE_NAME,
    )
    try:
        with open(css_path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        logger.error(f"❌ 加载 CSS 模板失败 ({css_path}): {e}")
        return "/* CSS 模板文件加载失败 */"


def _render_message(commit: Commit) -> str:
    """提交正文 (去掉与标题重复的部分) 转为 HTML"""
    body = commit.message
    if body == commit.title:
        return ""
    return markdown.markdown(
        html.escape(body, quote=False), extensions=["fenced_code", "sane_lists", "nl2br"]
    )


def generate_html_report(view: TimelineView, global_config: GlobalConfig) -> str:
    """使用 Jinja2 模板引擎生成 HTML 时间线"""
    templates_dir = os.path.join(
        global_config.SCRIPT_BASE_PATH, global_config.TEMPLATES_DIR_NAME
    )
    env = Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )

    groups = [
        {
            "group": group,
            "commits": [
                {
                    "commit": commit,
                    "time": commit.author_date.strftime("%m-%d %H:%M"),
                    "category": commit.category.value,
                    "category_label": CATEGORY_LABELS[commit.category],
                    "color": CATEGORY_COLORS[commit.category],
                    "message_html": _render_message(commit),
                }
                for commit in group.commits
            ],
        }
        for group in view.groups
    ]

    template_context = {
        "title": f"{VIEW_TITLES[view.window.granularity.value]} - {view.window.label}",
        "generation_time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "css_content": _get_css_styles(global_config),
        "view": view,
        "groups": groups,
        "failure_hint": FAILURE_HINTS.get(view.failure) if view.failure else None,
        "legend": [
            {"label": CATEGORY_LABELS[c], "color": CATEGORY_COLORS[c]} for c in Category
        ],
    }

    try:
        template = env.get_template(global_config.HTML_TEMPLATE_NAME)
        logger.info(f"🎨 正在渲染 Jinja2 模板: {global_config.HTML_TEMPLATE_NAME}")
        return template.render(**template_context)
    except Exception as e:
        logger.error(f"❌ Jinja2 模板渲染失败: {e}", exc_info=True)
        return f"<h1>错误：模板渲染失败</h1><pre>{e}</pre>"


def render_report(view: TimelineView, output_format: str, global_config: GlobalConfig) -> str:
    if output_format == "html":
        return generate_html_report(view, global_config)
    if output_format == "json":
        return generate_json_report(view)
    return generate_text_report(view)


def default_report_path(context: RunContext, extension: str) -> str:
    """data/<项目>/TeamStatus_<day|week>.<ext>，每次运行覆盖"""
    filename = (
        f"{context.global_config.OUTPUT_FILENAME_PREFIX}_"
        f"{context.view.granularity.value}.{extension}"
    )
    return os.path.join(context.project_data_path, filename)


def save_report(content: str, context: RunContext, extension: str) -> Optional[str]:
    """保存报告到文件，失败返回 None"""
    full_path = context.output_path or default_report_path(context, extension)
    try:
        parent = os.path.dirname(os.path.abspath(full_path))
        os.makedirs(parent, exist_ok=True)
        with open(full_path, "w", encoding="utf-8") as f:
            f.write(content)
        logger.info(f"✅ 报告已保存: {full_path}")
        return full_path
    except OSError as e:
        logger.error(f"❌ 保存报告失败 ({full_path}): {e}")
        return None
