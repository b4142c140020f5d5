# config_manager.py
"""
项目配置管理器
- 全局项目别名 (data/projects.json)
- 项目级默认配置 (data/<Project>/config.json)：默认视图、是否隐藏合并提交、默认输出格式
- 交互式配置向导与清理向导
"""

import glob
import json
import logging
import os
import shutil
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

PROJECTS_JSON_FILE = "projects.json"
CONFIG_JSON_FILE = "config.json"

VIEW_CHOICES = ("day", "week")
FORMAT_CHOICES = ("text", "html", "json")


def _load_json(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"❌ 加载 {path} 失败: {e}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"❌ {path} 内容不是 JSON 对象，已忽略")
        return {}
    return data


def _save_json(path: str, data: Dict[str, Any]) -> bool:
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=4, ensure_ascii=False)
        return True
    except OSError as e:
        logger.error(f"❌ 保存 {path} 失败: {e}")
        return False


def load_project_aliases(data_root_path: str) -> Dict[str, str]:
    """加载全局别名文件 (data/projects.json)"""
    return _load_json(os.path.join(data_root_path, PROJECTS_JSON_FILE))


def save_project_aliases(data_root_path: str, aliases: Dict[str, str]) -> bool:
    """保存全局别名文件 (data/projects.json)"""
    return _save_json(os.path.join(data_root_path, PROJECTS_JSON_FILE), aliases)


def get_path_from_alias(data_root_path: str, alias: str) -> Optional[str]:
    """通过别名获取仓库的绝对路径"""
    return load_project_aliases(data_root_path).get(alias)


def load_project_config(project_data_path: str) -> Dict[str, Any]:
    """加载特定项目的配置文件 (data/<Project>/config.json)"""
    return _load_json(os.path.join(project_data_path, CONFIG_JSON_FILE))


def save_project_config(project_data_path: str, config_data: Dict[str, Any]) -> bool:
    """保存特定项目的配置文件 (data/<Project>/config.json)"""
    return _save_json(os.path.join(project_data_path, CONFIG_JSON_FILE), config_data)


def get_project_data_path(data_root_path: str, repo_path: str) -> str:
    """根据仓库路径获取其数据存储路径 (以仓库目录名命名)"""
    project_name = os.path.basename(os.path.abspath(repo_path)) or "root_project"
    return os.path.join(data_root_path, project_name)


def _input_with_default(
    prompt: str, default: str, input_func: Callable[[str], str] = input
) -> str:
    """获取带默认值的用户输入"""
    return input_func(f"{prompt} [{default}]: ").strip() or default


def _input_choice(
    prompt: str, choices, default: str, input_func: Callable[[str], str] = input
) -> str:
    value = _input_with_default(f"{prompt} ({'/'.join(choices)})", default, input_func)
    if value not in choices:
        logger.warning(f"⚠️ 无效选项 {value!r}，使用默认值 {default}")
        return default
    return value


def run_interactive_config_wizard(
    data_root_path: str, repo_path: str, input_func: Callable[[str], str] = input
) -> Optional[str]:
    """
    运行交互式配置向导，返回保存的别名。
    """
    logger.info("--- 🚀 TeamWorks 配置向导 ---")
    repo_path_abs = os.path.abspath(repo_path)
    if not os.path.isdir(repo_path_abs):
        logger.error(f"路径 {repo_path_abs} 不是一个有效的目录。")
        return None

    project_data_path = get_project_data_path(data_root_path, repo_path_abs)
    logger.info(f"  [目标仓库]: {repo_path_abs}")
    logger.info(f"  [数据目录]: {project_data_path}")

    aliases = load_project_aliases(data_root_path)
    current_config = load_project_config(project_data_path)

    print("\n--- 1. 项目别名 ---")
    current_alias = next(
        (alias for alias, path in aliases.items() if path == repo_path_abs),
        os.path.basename(project_data_path),
    )
    alias = _input_with_default("  设置一个简短的别名 (用于 -p ...)", current_alias, input_func)
    aliases[alias] = repo_path_abs
    save_project_aliases(data_root_path, aliases)
    logger.info(f"✅ 别名 '{alias}' 已保存至 {PROJECTS_JSON_FILE}")

    print("\n--- 2. 项目默认值 ---")
    print("  (提示：直接按 Enter 键保留默认值)")
    config_data = dict(current_config)
    config_data["default_view"] = _input_choice(
        "  默认视图", VIEW_CHOICES, current_config.get("default_view", "day"), input_func
    )
    config_data["default_format"] = _input_choice(
        "  默认输出格式",
        FORMAT_CHOICES,
        current_config.get("default_format", "text"),
        input_func,
    )
    hide_default = "y" if current_config.get("hide_merges") else "n"
    config_data["hide_merges"] = (
        _input_with_default("  隐藏合并提交? (y/n)", hide_default, input_func).lower()
        == "y"
    )

    save_project_config(project_data_path, config_data)
    logger.info(f"✅ 项目配置已保存至 {project_data_path}/{CONFIG_JSON_FILE}")
    print(f"\n--- ✅ 配置完成！现在可以使用 'python TeamWorks.py -p {alias}' ---")
    return alias


def run_interactive_cleanup_wizard(
    data_root_path: str,
    project_data_path: str,
    alias: Optional[str],
    prefix: str,
    input_func: Callable[[str], str] = input,
):
    """
    运行交互式清理向导
    1. 删除导出的时间线文件 (保留配置)
    2. 彻底重置：删除项目数据目录并移除别名
    """
    logger.warning(f"--- ⚠️ 项目清理向导 ---")
    logger.warning(f"  [项目]: {alias or 'N/A'}")
    logger.warning(f"  [数据]: {project_data_path}")

    if not os.path.exists(project_data_path):
        logger.error(f"❌ 数据目录 {project_data_path} 不存在，无需清理。")
        return

    print("\n请选择要执行的清理操作：")
    print("  1. [清理导出]：删除导出的时间线文件 (保留 config.json 和别名)")
    print("  2. [彻底重置] (危险)：删除整个项目数据目录并移除别名")
    print("  3. [取消]")
    choice = input_func("请输入选项 (1, 2, 3): ").strip()

    if choice == "1":
        for path in glob.glob(os.path.join(project_data_path, f"{prefix}_*")):
            try:
                os.remove(path)
                logger.info(f"   - 已删除: {os.path.basename(path)}")
            except OSError as e:
                logger.error(f"   - 删除失败: {os.path.basename(path)}, 错误: {e}")
        logger.info("✅ 导出文件清理完成。")

    elif choice == "2":
        confirm = input_func(
            f"  这将删除整个 {project_data_path} 目录并移除别名 '{alias}'。\n"
            "  此操作不可撤销！请输入 'yes' 确认: "
        )
        if confirm.strip().lower() != "yes":
            logger.info("已取消重置操作。")
            return
        try:
            shutil.rmtree(project_data_path)
            logger.info(f"✅ 已删除项目数据目录: {project_data_path}")
        except OSError as e:
            logger.error(f"❌ 删除数据目录失败: {e}")
        if alias:
            aliases = load_project_aliases(data_root_path)
            if aliases.pop(alias, None) is not None:
                save_project_aliases(data_root_path, aliases)
                logger.info(f"✅ 已从 {PROJECTS_JSON_FILE} 中移除别名: {alias}")

    else:
        logger.info("已取消清理。")
