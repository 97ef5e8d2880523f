"""
文件对账器 - 定位宿主实际写出的文件并改为最终名称

背景：
宿主导出调用返回时文件可能仍在落盘，且文件名不一定包含请求的临时标识。

流程：
1. 固定等待（默认1秒）
2. 按扩展名列出目录文件
3. 模糊匹配：文件名包含 临时标识 / 图号 / 图名 任一
4. 取修改时间最新者（时间相同时优先包含临时标识者）
5. 已是目标路径（忽略大小写）则结束
6. 否则删除已有目标文件，再移动
7. 移动失败（文件被占用）最多尝试3次，间隔1.5秒
8. 无候选文件 → ReconcileNotFoundError
9. 目录无法扫描 → ReconcileError

最长阻塞 = 初始等待 + (尝试次数-1) × 间隔，默认约4秒。

测试要点：
- test_rename_temp_file: 正常改名
- test_pick_latest_mtime: 多候选取最新
- test_locked_retry_bound: 占用重试上限
- test_not_found: 无候选
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Callable
from pathlib import Path

from ..config import RuntimeConfig, get_config
from ..interfaces import (
    ConfigError,
    IFileReconciler,
    ReconcileError,
    ReconcileLockedError,
    ReconcileNotFoundError,
)
from ..models import SheetRef

logger = logging.getLogger(__name__)


class FileReconciler(IFileReconciler):
    """文件对账器实现"""

    def __init__(
        self,
        initial_wait_sec: float | None = None,
        max_attempts: int | None = None,
        retry_backoff_sec: float | None = None,
        sleep: Callable[[float], None] | None = None,
        config: RuntimeConfig | None = None,
    ):
        rc = (config or get_config()).reconcile
        self.initial_wait_sec = rc.initial_wait_sec if initial_wait_sec is None else initial_wait_sec
        self.max_attempts = rc.max_attempts if max_attempts is None else max_attempts
        self.retry_backoff_sec = (
            rc.retry_backoff_sec if retry_backoff_sec is None else retry_backoff_sec
        )
        if self.max_attempts < 1:
            raise ConfigError(f"对账尝试次数至少为1: {self.max_attempts}")
        self.sleep = sleep or time.sleep

    @property
    def worst_case_wait_sec(self) -> float:
        """单次对账最长等待时间"""
        return self.initial_wait_sec + (self.max_attempts - 1) * self.retry_backoff_sec

    def reconcile(
        self,
        folder: Path,
        temp_token: str,
        sheet: SheetRef,
        final_name: str,
        extension_glob: str,
    ) -> Path:
        """定位并改名导出文件"""
        # 等待宿主后台写盘
        self.sleep(self.initial_wait_sec)

        target = folder / final_name
        try:
            candidate = self.find_candidate(folder, temp_token, sheet, extension_glob)
        except OSError as e:
            raise ReconcileError(f"扫描输出目录失败: {folder}: {e}", path=folder) from e
        if candidate is None:
            raise ReconcileNotFoundError(
                f"未找到导出文件: {sheet.number} ({extension_glob})", path=target
            )

        if self._same_path(candidate, target):
            logger.debug(f"文件已是目标名称: {target}")
            return candidate

        self._move_with_retry(candidate, target)
        logger.info(f"已改名: {candidate.name} -> {target.name}")
        return target

    def find_candidate(
        self,
        folder: Path,
        temp_token: str,
        sheet: SheetRef,
        extension_glob: str,
    ) -> Path | None:
        """模糊匹配候选文件，取最新修改者"""
        if not folder.is_dir():
            return None

        scored: list[tuple[int, bool, Path]] = []
        for path in folder.glob(extension_glob):
            if not self._matches(path.name, temp_token, sheet):
                continue
            try:
                if not path.is_file():
                    continue
                mtime = path.stat().st_mtime_ns
            except OSError:
                # 扫描期间被宿主移走或无法访问
                continue
            scored.append((mtime, temp_token in path.name, path))

        if not scored:
            return None
        scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return scored[0][2]

    @staticmethod
    def _matches(filename: str, temp_token: str, sheet: SheetRef) -> bool:
        if temp_token and temp_token in filename:
            return True
        if sheet.number and sheet.number in filename:
            return True
        return bool(sheet.name) and sheet.name in filename

    @staticmethod
    def _same_path(a: Path, b: Path) -> bool:
        return str(a.absolute()).casefold() == str(b.absolute()).casefold()

    def _move_with_retry(self, source: Path, target: Path) -> None:
        """删除已有目标后移动；被占用时按固定间隔重试"""
        last_error: OSError | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                if target.exists():
                    target.unlink()
                shutil.move(str(source), str(target))
                return
            except OSError as e:
                last_error = e
                logger.warning(
                    f"改名失败({attempt}/{self.max_attempts}): {source.name} -> {target.name}: {e}"
                )
                if attempt < self.max_attempts:
                    self.sleep(self.retry_backoff_sec)

        raise ReconcileLockedError(
            f"文件被占用，改名失败: {source.name} -> {target.name}", path=source
        ) from last_error
