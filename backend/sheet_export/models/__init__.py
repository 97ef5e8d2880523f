"""
数据模型层 - 定义导出核心数据结构

所有模块通过这些模型交互，实现解耦：
- SheetRef / ProjectInfo: 宿主图纸与项目快照
- ExportBatchSpec: 批次配置
- ExportJob: 单张导出任务
- BatchResult: 批次结果
"""

from .batch import (
    ColorDepth,
    DwgOptions,
    ExportBatchSpec,
    ExportFormat,
    PdfOptions,
    RasterQuality,
)
from .job import BatchPhase, BatchResult, ExportJob, FailedSheet, FailureKind, ItemOutcome
from .sheet import ProjectInfo, SheetRef

__all__ = [
    "SheetRef",
    "ProjectInfo",
    "ExportFormat",
    "ColorDepth",
    "RasterQuality",
    "PdfOptions",
    "DwgOptions",
    "ExportBatchSpec",
    "BatchPhase",
    "FailureKind",
    "ExportJob",
    "FailedSheet",
    "ItemOutcome",
    "BatchResult",
]
