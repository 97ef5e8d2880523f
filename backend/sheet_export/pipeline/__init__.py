"""
流水线模块 - 批次导出编排

子模块：
- stages: 批次状态定义
- orchestrator: 批次编排器
- reconciler: 导出文件对账改名
- progress: 进度接收器与导出后动作
- report: 批次报告
"""

from .orchestrator import ExportOrchestrator
from .progress import LoggingProgressSink, open_folder
from .reconciler import FileReconciler
from .report import BatchReportWriter
from .stages import TRANSITIONS, check_transition, plan_phases

__all__ = [
    "ExportOrchestrator",
    "FileReconciler",
    "LoggingProgressSink",
    "open_folder",
    "BatchReportWriter",
    "TRANSITIONS",
    "check_transition",
    "plan_phases",
]
