# git_utils.py
import logging
import re
import subprocess
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from config import GlobalConfig
from models import Commit

logger = logging.getLogger(__name__)

# numstat 行格式：新增数<TAB>删除数<TAB>文件名，二进制文件为 "-"
NUMSTAT_PATTERN = re.compile(r"^(\d+|-)\s+(\d+|-)\s+")

MIN_LOG_FIELDS = 4

OUTPUT_CHUNK_BYTES = 64 * 1024

CommitFilter = Callable[[Commit], bool]


def run_git_command(
    cmd: Sequence[str],
    repo_path: str,
    context: str = "执行Git命令",
    timeout: int = GlobalConfig.GIT_TIMEOUT,
    max_output_bytes: int = GlobalConfig.GIT_MAX_OUTPUT_BYTES,
) -> Optional[str]:
    """
    统一的Git命令执行函数
    - 在 repo_path 下执行，不经过 shell
    - 分块读取 stdout，按字节计数，超过 max_output_bytes 立即终止进程
    - 超时、非零退出、找不到 git、输出超限均记录日志并返回 None
    """
    logger.debug(f"在 {repo_path} 中执行命令: {' '.join(cmd)}")
    with tempfile.TemporaryFile() as stderr_file:
        try:
            proc = subprocess.Popen(
                list(cmd),
                stdout=subprocess.PIPE,
                stderr=stderr_file,
                cwd=repo_path,
            )
        except FileNotFoundError as e:
            logger.error(f"{context}失败，找不到 git 或仓库路径: {e}")
            return None
        except OSError as e:
            logger.error(f"{context}出错: {e}")
            return None

        expired = threading.Event()

        def _expire():
            expired.set()
            proc.kill()

        timer = threading.Timer(timeout, _expire)
        timer.start()
        chunks: List[bytes] = []
        total_bytes = 0
        oversized = False
        try:
            while True:
                chunk = proc.stdout.read(OUTPUT_CHUNK_BYTES)
                if not chunk:
                    break
                total_bytes += len(chunk)
                if total_bytes > max_output_bytes:
                    oversized = True
                    proc.kill()
                    break
                chunks.append(chunk)
            returncode = proc.wait()
        finally:
            timer.cancel()
            proc.stdout.close()

        if expired.is_set():
            logger.error(f"{context}超时 ({timeout}s)")
            return None
        if oversized:
            logger.error(f"{context}输出超过上限 {max_output_bytes} 字节，已终止")
            return None
        if returncode != 0:
            stderr_file.seek(0)
            stderr = stderr_file.read().decode("utf-8", errors="replace")
            logger.error(f"{context}失败: {stderr.strip()}")
            return None

    output = b"".join(chunks).decode("utf-8", errors="replace")
    logger.debug(f"{context}成功，输出 {total_bytes} 字节")
    return output


def is_git_repository(
    repo_path: str, global_config: Optional[GlobalConfig] = None
) -> bool:
    """检查指定路径是否为Git仓库 (git rev-parse --git-dir)"""
    cfg = global_config or GlobalConfig()
    try:
        result = subprocess.run(
            cfg.GIT_PROBE_ARGS,
            capture_output=True,
            text=True,
            timeout=cfg.GIT_TIMEOUT,
            cwd=repo_path,
        )
        return result.returncode == 0
    except (OSError, subprocess.TimeoutExpired):
        return False


def format_git_date(instant: datetime) -> str:
    """git --since/--until 可识别的带时区时间"""
    return instant.strftime("%Y-%m-%d %H:%M:%S %z")


def get_git_log(
    repo_path: str,
    query_start: datetime,
    query_end: datetime,
    global_config: GlobalConfig,
) -> Optional[str]:
    """获取所有分支在 [query_start, query_end] 内的提交 (按提交时间)"""
    cmd = [
        arg.format(since=format_git_date(query_start), until=format_git_date(query_end))
        for arg in global_config.GIT_LOG_ARGS
    ]
    return run_git_command(
        cmd,
        repo_path,
        "获取Git提交历史",
        timeout=global_config.GIT_TIMEOUT,
        max_output_bytes=global_config.GIT_MAX_OUTPUT_BYTES,
    )


def parse_single_commit(record: str, field_separator: str) -> Optional[Commit]:
    """解析单条提交记录，字段不足或日期非法时返回 None"""
    parts = record.split(field_separator)
    if len(parts) < MIN_LOG_FIELDS:
        logger.debug(f"提交格式异常，已跳过: {record!r}")
        return None

    commit_hash, author, author_date_str, title = (p.strip() for p in parts[:4])
    # 正文可能包含分隔符，需重新拼接
    body = field_separator.join(parts[4:]).strip()
    try:
        author_date = datetime.fromisoformat(author_date_str)
    except ValueError:
        logger.debug(f"作者时间无法解析，已跳过: {author_date_str!r}")
        return None
    if author_date.tzinfo is None:
        author_date = author_date.astimezone()

    return Commit(
        hash=commit_hash,
        author=author,
        author_date=author_date,
        title=title,
        message=body or title,
    )


def parse_log_output(
    log_output: str,
    field_separator: str = GlobalConfig.FIELD_SEPARATOR,
    record_separator: str = GlobalConfig.RECORD_SEPARATOR,
) -> List[Commit]:
    """解析 git log 输出，保持 git 返回的顺序"""
    commits: List[Commit] = []
    if not log_output or not log_output.strip():
        return commits
    for record in log_output.split(record_separator):
        record = record.strip("\r\n")
        if not record.strip():
            continue
        commit = parse_single_commit(record, field_separator)
        if commit:
            commits.append(commit)
    logger.info(f"成功解析 {len(commits)} 个提交")
    return commits


def parse_numstat(output: Optional[str]) -> Tuple[int, int, int]:
    """
    汇总 numstat 输出，返回 (文件数, 新增行数, 删除行数)。
    二进制文件计入文件数，但不计入行数。
    """
    file_count = insertions = deletions = 0
    if not output:
        return file_count, insertions, deletions
    for line in output.splitlines():
        match = NUMSTAT_PATTERN.match(line.strip())
        if not match:
            continue
        file_count += 1
        added, removed = match.groups()
        insertions += 0 if added == "-" else int(added)
        deletions += 0 if removed == "-" else int(removed)
    return file_count, insertions, deletions


def get_commit_stats(
    repo_path: str, commit_hash: str, global_config: GlobalConfig
) -> Tuple[int, int, int]:
    """获取单个提交的变更统计，失败时返回全 0"""
    cmd = [arg.format(commit_hash=commit_hash) for arg in global_config.GIT_NUMSTAT_ARGS]
    output = run_git_command(
        cmd,
        repo_path,
        f"获取 {commit_hash[:7]} 的统计信息",
        timeout=global_config.GIT_TIMEOUT,
        max_output_bytes=global_config.GIT_MAX_OUTPUT_BYTES,
    )
    return parse_numstat(output)


def attach_stats(
    repo_path: str, commits: List[Commit], global_config: GlobalConfig
) -> List[Commit]:
    """并发获取每个提交的统计信息，按 hash 合并回原顺序"""
    if not commits:
        return []

    workers = max(1, min(global_config.STAT_WORKERS, len(commits)))
    stats_by_hash: Dict[str, Tuple[int, int, int]] = {}
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(get_commit_stats, repo_path, c.hash, global_config): c.hash
            for c in commits
        }
        for future in as_completed(futures):
            stats_by_hash[futures[future]] = future.result()

    enriched = []
    for commit in commits:
        file_count, insertions, deletions = stats_by_hash.get(commit.hash, (0, 0, 0))
        enriched.append(
            replace(
                commit,
                file_count=file_count,
                insertions=insertions,
                deletions=deletions,
            )
        )
    return enriched


def build_commits(
    repo_path: str,
    log_output: str,
    global_config: GlobalConfig,
    accept: Optional[CommitFilter] = None,
) -> List[Commit]:
    """解析日志、执行过滤器，再为保留下来的提交补全统计信息"""
    commits = parse_log_output(
        log_output, global_config.FIELD_SEPARATOR, global_config.RECORD_SEPARATOR
    )
    if accept is not None:
        commits = [c for c in commits if accept(c)]
    return attach_stats(repo_path, commits, global_config)


def fetch_commits_in_range(
    repo_path: str,
    query_start: datetime,
    query_end: datetime,
    global_config: Optional[GlobalConfig] = None,
    accept: Optional[CommitFilter] = None,
) -> List[Commit]:
    """
    获取查询范围内的提交并补全统计信息。
    - accept: 可选过滤器，在统计查询之前执行，避免为无用提交发起查询
    - 任何失败都返回空列表，不向调用方抛出
    """
    cfg = global_config or GlobalConfig()
    log_output = get_git_log(repo_path, query_start, query_end, cfg)
    if not log_output:
        return []

    return build_commits(repo_path, log_output, cfg, accept)
