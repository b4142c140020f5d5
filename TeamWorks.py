# TeamWorks.py
"""
TeamWorks 团队工作时间线
- cli.py: 负责命令行界面和配置组装
- context.py: 负责运行时配置与视图状态
- orchestrator.py: 负责核心业务流程
- TeamWorks.py: 仅作为主入口启动器
"""

import logging
import sys

# 1. 初始化日志 (必须在所有模块导入之前完成)
import utils

utils.setup_logging()

logger = logging.getLogger(__name__)


if __name__ == "__main__":
    try:
        # 延迟导入 cli 模块，确保日志已配置
        import cli

        sys.exit(cli.run_cli())

    except Exception as e:
        logger.error(f"❌ 发生未处理的全局异常: {e}", exc_info=True)
        sys.exit(1)
