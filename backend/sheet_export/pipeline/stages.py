"""
批次阶段定义

状态机：INIT → COMBINED_PDF(可选) → PER_ITEM(可选) → DONE | ABORTED

测试要点：
- test_plan_combined_only: 仅合并PDF
- test_plan_both_combined: 合并PDF + 逐张DWG
- test_invalid_transition: 非法跳转
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import BatchPhase

if TYPE_CHECKING:
    from ..models import ExportBatchSpec


# 允许的状态跳转（任意非终态都可进入 ABORTED）
TRANSITIONS: dict[BatchPhase, set[BatchPhase]] = {
    BatchPhase.INIT: {BatchPhase.COMBINED_PDF, BatchPhase.PER_ITEM, BatchPhase.DONE},
    BatchPhase.COMBINED_PDF: {BatchPhase.PER_ITEM, BatchPhase.DONE},
    BatchPhase.PER_ITEM: {BatchPhase.DONE},
    BatchPhase.DONE: set(),
    BatchPhase.ABORTED: set(),
}

TERMINAL_PHASES = frozenset({BatchPhase.DONE, BatchPhase.ABORTED})


def plan_phases(batch: ExportBatchSpec) -> list[BatchPhase]:
    """按批次配置列出要执行的阶段"""
    phases: list[BatchPhase] = []
    if batch.runs_combined_pdf:
        phases.append(BatchPhase.COMBINED_PDF)
    if batch.runs_per_item:
        phases.append(BatchPhase.PER_ITEM)
    return phases


def check_transition(current: BatchPhase, target: BatchPhase) -> BatchPhase:
    """校验状态跳转，返回新状态"""
    if target == BatchPhase.ABORTED and current not in TERMINAL_PHASES:
        return target
    if target not in TRANSITIONS[current]:
        raise RuntimeError(f"非法阶段跳转: {current.value} -> {target.value}")
    return target
