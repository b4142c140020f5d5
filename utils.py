import logging
import os
import subprocess
import sys
import webbrowser


def setup_logging(level: int = logging.INFO):
    """配置全局日志 (输出到 stderr，避免干扰 stdout 上的报告内容)"""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def open_report_in_browser(filename: str):
    """在浏览器中打开报告"""
    logger = logging.getLogger(__name__)
    try:
        if os.name == "nt":  # Windows
            os.startfile(filename)
        elif sys.platform == "darwin":
            subprocess.run(["open", filename], check=False)
        else:
            webbrowser.open(f"file://{os.path.abspath(filename)}")
        logger.info(f"🌐 已在浏览器中打开报告: {filename}")
    except Exception as e:
        logger.warning(f"无法自动打开报告，请手动打开: {filename}, 错误: {e}")
