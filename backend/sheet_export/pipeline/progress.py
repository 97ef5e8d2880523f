"""
进度与导出后动作

- LoggingProgressSink: 无界面环境下的进度接收器（写日志）
- open_folder: 导出完成后在系统文件管理器中打开输出目录
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

from ..interfaces import IProgressSink

logger = logging.getLogger(__name__)


class LoggingProgressSink(IProgressSink):
    """写日志的进度接收器"""

    def __init__(self, title: str = "Sheet export"):
        self.title = title
        self.percent = 0.0
        self.status = ""
        self.closed = False

    def update(self, percent: float) -> None:
        self.percent = max(0.0, min(100.0, percent))
        logger.info(f"{self.title}: {int(self.percent)}%")

    def set_status(self, text: str) -> None:
        self.status = text
        logger.info(f"{self.title}: {text}")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        logger.debug(f"{self.title}: 进度已关闭")


def open_folder(path: Path) -> bool:
    """打开目录（失败只记录，不影响导出结果）"""
    try:
        if sys.platform.startswith("win"):
            os.startfile(str(path))  # type: ignore[attr-defined]
        elif sys.platform == "darwin":
            subprocess.run(["open", str(path)], check=True, timeout=10)
        else:
            subprocess.run(["xdg-open", str(path)], check=True, timeout=10)
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"无法打开输出目录: {path}: {e}")
        return False
    return True
