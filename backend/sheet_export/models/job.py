"""
导出任务模型 - 单张图纸的工作单元与批次结果

ExportJob 只在一次编排运行内创建和消费；BatchResult 是返回给调用方的最终产物。
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from .sheet import SheetRef


class BatchPhase(str, Enum):
    """批次状态"""
    INIT = "init"
    COMBINED_PDF = "combined_pdf"
    PER_ITEM = "per_item"
    DONE = "done"
    ABORTED = "aborted"


class FailureKind(str, Enum):
    """单张失败类型"""
    NAMING = "naming"                              # 命名失败（宿主参数读取出错）
    EXPORT_CALL = "export_call"                    # 宿主导出抛错（已回滚）
    RECONCILE_LOCKED = "reconcile_locked"          # 文件被占用，重试耗尽
    RECONCILE_NOT_FOUND = "reconcile_not_found"    # 未找到导出文件
    RECONCILE_ERROR = "reconcile_error"            # 对账时其他文件系统错误


class ExportJob(BaseModel):
    """单张图纸导出任务"""
    sheet: SheetRef
    temp_token: str
    final_base_name: str
    formats_requested: tuple[str, ...] = ()

    def final_name(self, ext: str) -> str:
        return f"{self.final_base_name}.{ext}"


class FailedSheet(BaseModel):
    """失败记录"""
    sheet: SheetRef
    reason: str
    error_kind: FailureKind

    model_config = {"frozen": True}


class ItemOutcome(BaseModel):
    """单张处理结果（成功文件 + 可选失败；命名失败时无 job）"""
    job: ExportJob | None = None
    files: list[Path] = Field(default_factory=list)
    failure: FailedSheet | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class BatchResult(BaseModel):
    """批次结果（返回后不可变）"""
    succeeded_files: tuple[Path, ...] = ()
    failed_sheets: tuple[FailedSheet, ...] = ()
    sheet_files: tuple[tuple[str, tuple[Path, ...]], ...] = Field((), description="(图纸ID, 逐张文件)")
    cancelled: bool = False
    phase: BatchPhase = BatchPhase.DONE
    started_at: datetime | None = None
    finished_at: datetime | None = None

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return not self.failed_sheets and not self.cancelled and self.phase == BatchPhase.DONE

    def failed_numbers(self) -> list[str]:
        return [f.sheet.number for f in self.failed_sheets]

    def files_for(self, sheet_id: str) -> tuple[Path, ...]:
        """某张图纸逐张导出的文件（合并PDF或失败时为空）"""
        for key, files in self.sheet_files:
            if key == sheet_id:
                return files
        return ()
