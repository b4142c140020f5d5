# config.py
"""
[V5.0] 全局配置
- 所有可调参数均可通过 .env 或环境变量覆盖
- 查询窗口的扩展范围 (lookbehind/lookahead) 作为可配置常量
"""
import logging
import os
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- 脚本基础路径 ---
SCRIPT_BASE_PATH = os.path.abspath(os.path.dirname(__file__))
env_path = os.path.join(SCRIPT_BASE_PATH, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
    logger.info(f"✅ 已从脚本目录加载 .env: {env_path}")
else:
    load_dotenv()
    logger.info("⚠️ 未在脚本目录找到 .env，尝试从 CWD 加载。")


def _env_int(name: str, default: int) -> int:
    """读取整数型环境变量，非法值回退到默认值"""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"⚠️ 环境变量 {name}={raw!r} 不是整数，使用默认值 {default}")
        return default


class GlobalConfig:
    """
    团队工作时间线的全局应用配置。
    """

    # --- 路径配置 ---
    SCRIPT_BASE_PATH: str = SCRIPT_BASE_PATH
    DATA_ROOT_DIR_NAME: str = "data"
    DATA_ROOT_PATH: str = os.getenv("TEAMWORKS_DATA_DIR", "").strip() or os.path.join(
        SCRIPT_BASE_PATH, DATA_ROOT_DIR_NAME
    )
    TEMPLATES_DIR_NAME: str = "templates"
    HTML_TEMPLATE_NAME: str = "timeline.html.j2"
    CSS_FILE_NAME: str = "styles.css"

    # --- Git 命令参数 ---
    # 字段用 US (0x1f) 分隔，记录用 RS (0x1e) 结尾，正文中的换行不会打断记录
    FIELD_SEPARATOR: str = "\x1f"
    RECORD_SEPARATOR: str = "\x1e"
    GIT_LOG_ARGS = [
        "git",
        "log",
        "--all",
        "--since={since}",
        "--until={until}",
        "--format=%H%x1f%an%x1f%aI%x1f%s%x1f%b%x1e",
    ]
    GIT_NUMSTAT_ARGS = ["git", "show", "--numstat", "--format=", "{commit_hash}"]
    GIT_PROBE_ARGS = ["git", "rev-parse", "--git-dir"]

    # --- 进程限制 ---
    GIT_TIMEOUT: int = _env_int("TEAMWORKS_GIT_TIMEOUT", 30)
    GIT_MAX_OUTPUT_BYTES: int = _env_int("TEAMWORKS_MAX_OUTPUT_MB", 10) * 1024 * 1024
    STAT_WORKERS: int = _env_int("TEAMWORKS_STAT_WORKERS", 4)

    # --- 查询窗口扩展 (单位: 天) ---
    # git 的 --since/--until 按提交时间过滤，而时间线按作者时间统计，
    # 因此先放宽查询范围，再在进程内按作者时间精确过滤。
    DAY_LOOKBEHIND_DAYS: int = _env_int("TEAMWORKS_DAY_LOOKBEHIND_DAYS", 7)
    DAY_LOOKAHEAD_DAYS: int = _env_int("TEAMWORKS_DAY_LOOKAHEAD_DAYS", 1)
    WEEK_LOOKBEHIND_DAYS: int = _env_int("TEAMWORKS_WEEK_LOOKBEHIND_DAYS", 7)
    WEEK_LOOKAHEAD_DAYS: int = _env_int("TEAMWORKS_WEEK_LOOKAHEAD_DAYS", 7)

    # --- 时区与视图 ---
    # 为空表示使用本机时区
    TIMEZONE: str = os.getenv("TEAMWORKS_TIMEZONE", "").strip()
    DEFAULT_VIEW: str = os.getenv("TEAMWORKS_DEFAULT_VIEW", "day").strip().lower()

    # --- 输出文件 ---
    OUTPUT_FILENAME_PREFIX: str = "TeamStatus"
    OUTPUT_FORMATS = ["text", "html", "json"]
