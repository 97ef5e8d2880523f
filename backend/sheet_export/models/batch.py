"""
批次配置模型 - 由外部UI构造，一次性交给编排器

对应导出对话框收集的参数：输出目录、命名规则、合并、格式、DWG设置等
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ExportFormat(str, Enum):
    """导出格式"""
    PDF = "pdf"
    DWG = "dwg"
    BOTH = "both"

    @classmethod
    def from_mode(cls, mode: int) -> ExportFormat:
        """UI下拉框序号转格式（0=PDF, 1=DWG, 2=Both）"""
        modes = {0: cls.PDF, 1: cls.DWG, 2: cls.BOTH}
        if mode not in modes:
            raise ValueError(f"未知导出模式: {mode}")
        return modes[mode]

    @property
    def includes_pdf(self) -> bool:
        return self in (ExportFormat.PDF, ExportFormat.BOTH)

    @property
    def includes_dwg(self) -> bool:
        return self in (ExportFormat.DWG, ExportFormat.BOTH)


class ColorDepth(str, Enum):
    COLOR = "color"
    GRAYSCALE = "grayscale"


class RasterQuality(str, Enum):
    PRESENTATION = "presentation"
    HIGH = "high"


class PdfOptions(BaseModel):
    """PDF导出选项（对核心不透明，原样传给宿主）"""
    file_name: str = ""
    combine: bool = False
    color_depth: ColorDepth = ColorDepth.COLOR
    raster_quality: RasterQuality = RasterQuality.PRESENTATION
    hide_scope_boxes: bool = False
    hide_reference_planes: bool = True
    stop_on_error: bool = False


class DwgOptions(BaseModel):
    """DWG导出选项"""
    setup_name: str | None = None
    merged_views: bool = True


class ExportBatchSpec(BaseModel):
    """批次导出配置"""
    output_folder: Path
    naming_rule: str = "{Sheet Number}-{Sheet Name}"
    combine: bool = False
    format: ExportFormat = ExportFormat.PDF
    dwg_setup_name: str | None = None
    pdf_options: PdfOptions = Field(default_factory=PdfOptions)
    open_folder_after: bool = False

    @field_validator("output_folder")
    @classmethod
    def _check_absolute(cls, v: Path) -> Path:
        if not v.is_absolute():
            raise ValueError(f"输出目录必须为绝对路径: {v}")
        return v

    @property
    def runs_combined_pdf(self) -> bool:
        """是否执行合并PDF阶段"""
        return self.combine and self.format.includes_pdf

    @property
    def per_item_formats(self) -> tuple[str, ...]:
        """逐张导出阶段需要的格式（DWG永不合并）"""
        formats: list[str] = []
        if self.format.includes_pdf and not self.combine:
            formats.append("pdf")
        if self.format.includes_dwg:
            formats.append("dwg")
        return tuple(formats)

    @property
    def runs_per_item(self) -> bool:
        return bool(self.per_item_formats)

    def build_pdf_options(self, file_name: str) -> PdfOptions:
        """生成本次调用的PDF选项副本"""
        return self.pdf_options.model_copy(
            update={"file_name": file_name, "combine": self.combine}
        )

    def build_dwg_options(self) -> DwgOptions:
        return DwgOptions(setup_name=self.dwg_setup_name)
