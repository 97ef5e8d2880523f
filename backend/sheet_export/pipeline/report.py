"""
批次报告 - 生成 export_report.json 和 export_report.xlsx

职责：
1. 批次manifest（输入参数/成功文件/失败图纸/时间戳）
2. 图纸发图清单（每张图纸一行：图号/图名/状态/文件/原因）

依赖：
- openpyxl: Excel写出

测试要点：
- test_manifest_structure: manifest结构
- test_transmittal_rows: 清单行与状态
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

from ..interfaces import IReportWriter
from ..models import BatchResult, ExportBatchSpec, SheetRef

SCHEMA_VERSION = "1.0"
MANIFEST_NAME = "export_report.json"
TRANSMITTAL_NAME = "export_report.xlsx"
TRANSMITTAL_HEADERS = ["Sheet Number", "Sheet Name", "Status", "Files", "Reason"]


class BatchReportWriter(IReportWriter):
    """批次报告写出器"""

    def write_manifest(self, result: BatchResult, batch: ExportBatchSpec, dest_dir: Path) -> Path:
        """生成 export_report.json"""
        dest_dir.mkdir(parents=True, exist_ok=True)

        manifest = {
            "schema_version": SCHEMA_VERSION,
            "inputs": {
                "output_folder": str(batch.output_folder),
                "naming_rule": batch.naming_rule,
                "combine": batch.combine,
                "format": batch.format.value,
                "dwg_setup_name": batch.dwg_setup_name,
                "pdf_options": batch.pdf_options.model_dump(mode="json", exclude={"file_name"}),
            },
            "phase": result.phase.value,
            "cancelled": result.cancelled,
            "succeeded_files": [str(p) for p in result.succeeded_files],
            "failed_sheets": [
                {
                    "sheet_id": f.sheet.id,
                    "sheet_number": f.sheet.number,
                    "sheet_name": f.sheet.name,
                    "error_kind": f.error_kind.value,
                    "reason": f.reason,
                }
                for f in result.failed_sheets
            ],
            "timestamps": {
                "started_at": result.started_at.isoformat() if result.started_at else None,
                "finished_at": result.finished_at.isoformat() if result.finished_at else None,
            },
        }

        manifest_path = dest_dir / MANIFEST_NAME
        with open(manifest_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, ensure_ascii=False, indent=2)

        return manifest_path

    def write_transmittal(
        self, result: BatchResult, sheets: Sequence[SheetRef], dest_dir: Path
    ) -> Path:
        """生成 export_report.xlsx（每张图纸一行）"""
        dest_dir.mkdir(parents=True, exist_ok=True)

        failures = {f.sheet.id: f for f in result.failed_sheets}
        wb = Workbook()
        ws = wb.active
        ws.title = "Export"
        ws.append(TRANSMITTAL_HEADERS)
        for cell in ws[1]:
            cell.font = Font(bold=True)

        for sheet in sheets:
            failure = failures.get(sheet.id)
            files = result.files_for(sheet.id)
            if failure is not None:
                status = "Failed"
            elif files:
                status = "Exported"
            elif result.cancelled:
                status = "Cancelled"
            else:
                # 合并PDF时单张图纸没有独立文件
                status = "Combined"
            ws.append([
                sheet.number,
                sheet.name,
                status,
                ", ".join(p.name for p in files),
                failure.reason if failure else "",
            ])

        ws.column_dimensions["A"].width = 16
        ws.column_dimensions["B"].width = 40
        ws.column_dimensions["D"].width = 48
        ws.column_dimensions["E"].width = 60

        report_path = dest_dir / TRANSMITTAL_NAME
        wb.save(report_path)
        return report_path

