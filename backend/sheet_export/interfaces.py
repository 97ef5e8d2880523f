"""
模块接口契约 - 定义导出核心与宿主协作方的抽象接口

设计原则：
1. 导出核心只通过接口与宿主通信，不直接依赖宿主文档模型
2. 每个接口定义清晰的输入输出类型
3. 便于单元测试和stub替换

使用方式：
    from sheet_export.interfaces import IExporter

    class HostExporter(IExporter):
        def export_single(self, folder, name_hint, sheet_id, pdf_options) -> None:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import BatchResult, DwgOptions, ExportBatchSpec, PdfOptions, SheetRef


# ============================================================================
# 宿主协作方接口
# ============================================================================

class IAttributeProvider(ABC):
    """属性提供者接口 - 图纸级/项目级参数查询"""

    @abstractmethod
    def lookup(self, name: str) -> str | None:
        """
        按参数名查询值

        Returns:
            参数值（可能为空字符串）；参数不存在时返回None
        """
        ...


class IExporter(ABC):
    """宿主导出器接口 - PDF/DWG 渲染由宿主完成（黑盒）

    三个方法都可能抛出任意异常；落盘文件名都不保证等于 name_hint。
    """

    @abstractmethod
    def export_combined(
        self,
        folder: Path,
        sheet_ids: Sequence[str],
        pdf_options: PdfOptions,
    ) -> None:
        """合并导出单个PDF（文件名取 pdf_options.file_name）"""
        ...

    @abstractmethod
    def export_single(
        self,
        folder: Path,
        name_hint: str,
        sheet_id: str,
        pdf_options: PdfOptions,
    ) -> None:
        """单张图纸导出PDF"""
        ...

    @abstractmethod
    def export_dwg(
        self,
        folder: Path,
        name_hint: str,
        sheet_id: str,
        dwg_options: DwgOptions,
    ) -> None:
        """单张图纸导出DWG（name_hint 作为前缀）"""
        ...


class ITransactionalUnit(ABC):
    """事务单元接口 - 包裹每次导出调用"""

    @abstractmethod
    def start(self) -> None:
        ...

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...


# 事务工厂：按名称创建新的事务单元
TransactionFactory = Callable[[str], ITransactionalUnit]


class IProgressSink(ABC):
    """进度接收器接口 - 任何退出路径都必须 close()"""

    @abstractmethod
    def update(self, percent: float) -> None:
        """更新进度（0-100）"""
        ...

    @abstractmethod
    def set_status(self, text: str) -> None:
        """更新状态文本"""
        ...

    @abstractmethod
    def close(self) -> None:
        ...


# ============================================================================
# 导出核心接口
# ============================================================================

class IFileReconciler(ABC):
    """文件对账器接口 - 找到宿主实际写出的文件并改名"""

    @abstractmethod
    def reconcile(
        self,
        folder: Path,
        temp_token: str,
        sheet: SheetRef,
        final_name: str,
        extension_glob: str,
    ) -> Path:
        """
        定位并改名导出文件

        Args:
            folder: 输出目录
            temp_token: 本次导出使用的临时标识
            sheet: 图纸
            final_name: 目标文件名（含扩展名）
            extension_glob: 扩展名通配（如 "*.pdf"）

        Returns:
            最终文件路径

        Raises:
            ReconcileNotFoundError: 未找到候选文件
            ReconcileLockedError: 文件持续被占用，重试耗尽
            ReconcileError: 输出目录无法扫描
        """
        ...


class IReportWriter(ABC):
    """批次报告写出器接口"""

    @abstractmethod
    def write_manifest(
        self, result: BatchResult, batch: ExportBatchSpec, dest_dir: Path
    ) -> Path:
        """生成 export_report.json"""
        ...

    @abstractmethod
    def write_transmittal(
        self, result: BatchResult, sheets: Sequence[SheetRef], dest_dir: Path
    ) -> Path:
        """生成 export_report.xlsx"""
        ...


# ============================================================================
# 异常定义
# ============================================================================

class SheetExportError(Exception):
    """基础异常"""
    pass


class ConfigError(SheetExportError):
    """配置错误（输出目录不可用/图纸为空等，批次不启动）"""
    pass


class ExportCallError(SheetExportError):
    """宿主导出调用失败"""
    pass


class ReconcileError(SheetExportError):
    """对账错误"""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class ReconcileLockedError(ReconcileError):
    """文件被占用，重试耗尽（文件仍以宿主命名保留在目录中）"""
    pass


class ReconcileNotFoundError(ReconcileError):
    """未找到导出文件（宿主可能静默失败）"""
    pass
