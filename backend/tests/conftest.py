"""
pytest 配置与公共 fixtures

使用方式：
    def test_something(orchestrator_factory, sample_sheets, out_dir):
        result = orchestrator_factory().run(batch, sample_sheets)
"""

from __future__ import annotations

import tempfile
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Generator

import pytest

from sheet_export.config import RuntimeConfig
from sheet_export.interfaces import IExporter, IProgressSink, ITransactionalUnit
from sheet_export.models import DwgOptions, PdfOptions, ProjectInfo, SheetRef
from sheet_export.pipeline import ExportOrchestrator, FileReconciler


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def runtime_config(temp_dir: Path) -> RuntimeConfig:
    """运行期配置（存储目录指向临时目录）"""
    return RuntimeConfig(storage_dir=temp_dir / "storage")


# ============================================================================
# 数据模型 Fixtures
# ============================================================================

@pytest.fixture
def sample_sheet() -> SheetRef:
    """示例图纸"""
    return SheetRef(
        id="1001",
        number="A101",
        name="Floor Plan",
        attributes={"Drawn By": "JD", "Checked By": None},
    )


@pytest.fixture
def sample_sheets() -> list[SheetRef]:
    """3张示例图纸（已按图号排序）"""
    return [
        SheetRef(id="1001", number="A101", name="Floor Plan"),
        SheetRef(id="1002", number="A102", name="Sections"),
        SheetRef(id="1003", number="A103", name="Details"),
    ]


@pytest.fixture
def sample_project() -> ProjectInfo:
    """示例项目"""
    return ProjectInfo(
        number="P-2026",
        name="Harbor Tower",
        attributes={"Client Name": "ACME"},
    )


# ============================================================================
# 宿主 Stub
# ============================================================================

class StubExporter(IExporter):
    """写真实文件的宿主导出器 stub

    name_mode:
        "hint"   按 name_hint 写文件
        "number" 忽略 name_hint，按 "<Sheet> - <图号>" 命名（宿主怪癖）
        "silent" 不写任何文件也不报错（静默失败）
    """

    def __init__(self, sheets: Sequence[SheetRef], name_mode: str = "hint"):
        self.sheets = {s.id: s for s in sheets}
        self.name_mode = name_mode
        self.fail_ids: set[str] = set()
        self.fail_combined = False
        self.calls: list[tuple[str, str]] = []

    def export_combined(self, folder: Path, sheet_ids: Sequence[str], pdf_options: PdfOptions) -> None:
        self.calls.append(("combined", pdf_options.file_name))
        if self.fail_combined:
            raise RuntimeError("host export failed")
        (folder / f"{pdf_options.file_name}.pdf").write_bytes(b"%PDF-combined")

    def export_single(self, folder: Path, name_hint: str, sheet_id: str, pdf_options: PdfOptions) -> None:
        self.calls.append(("pdf", sheet_id))
        self._write(folder, name_hint, sheet_id, "pdf")

    def export_dwg(self, folder: Path, name_hint: str, sheet_id: str, dwg_options: DwgOptions) -> None:
        self.calls.append(("dwg", sheet_id))
        self._write(folder, name_hint, sheet_id, "dwg")

    def _write(self, folder: Path, name_hint: str, sheet_id: str, ext: str) -> None:
        if sheet_id in self.fail_ids:
            raise RuntimeError(f"host export failed for {sheet_id}")
        if self.name_mode == "silent":
            return
        if self.name_mode == "number":
            stem = f"Sheet - {self.sheets[sheet_id].number}"
        else:
            stem = name_hint
        (folder / f"{stem}.{ext}").write_bytes(b"data")


class RecordingTransaction(ITransactionalUnit):
    """记录调用顺序的事务 stub"""

    def __init__(self, name: str, events: list[tuple[str, str]], fail_rollback: bool = False):
        self.name = name
        self.events = events
        self.fail_rollback = fail_rollback

    def start(self) -> None:
        self.events.append((self.name, "start"))

    def commit(self) -> None:
        self.events.append((self.name, "commit"))

    def rollback(self) -> None:
        self.events.append((self.name, "rollback"))
        if self.fail_rollback:
            raise RuntimeError("rollback failed")


class RecordingProgress(IProgressSink):
    """记录进度的 stub"""

    def __init__(self):
        self.percents: list[float] = []
        self.statuses: list[str] = []
        self.close_count = 0

    def update(self, percent: float) -> None:
        self.percents.append(percent)

    def set_status(self, text: str) -> None:
        self.statuses.append(text)

    def close(self) -> None:
        self.close_count += 1


@pytest.fixture
def sleeps() -> list[float]:
    """记录对账等待（不真正sleep）"""
    return []


@pytest.fixture
def fast_reconciler(runtime_config: RuntimeConfig, sleeps: list[float]) -> FileReconciler:
    return FileReconciler(config=runtime_config, sleep=sleeps.append)


@pytest.fixture
def tx_events() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def exporter(sample_sheets: list[SheetRef]) -> StubExporter:
    return StubExporter(sample_sheets)


@pytest.fixture
def exporter_factory(sample_sheets: list[SheetRef]):
    """按命名模式构造导出器 stub"""

    def _factory(name_mode: str = "hint") -> StubExporter:
        return StubExporter(sample_sheets, name_mode=name_mode)

    return _factory


@pytest.fixture
def orchestrator_factory(
    exporter: StubExporter,
    tx_events: list[tuple[str, str]],
    progress: RecordingProgress,
    sample_project: ProjectInfo,
    fast_reconciler: FileReconciler,
    runtime_config: RuntimeConfig,
):
    """构造编排器（可替换导出器，可模拟回滚失败）"""

    def _factory(host: StubExporter | None = None, fail_rollback: bool = False) -> ExportOrchestrator:
        return ExportOrchestrator(
            exporter=host or exporter,
            transaction_factory=lambda name: RecordingTransaction(name, tx_events, fail_rollback),
            progress=progress,
            project=sample_project,
            reconciler=fast_reconciler,
            config=runtime_config,
            clock=lambda: datetime(2026, 10, 18, 9, 30),
        )

    return _factory


# ============================================================================
# 文件 Fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def out_dir(temp_dir: Path) -> Path:
    """输出目录（绝对路径，尚未创建）"""
    return (temp_dir / "out").resolve()
