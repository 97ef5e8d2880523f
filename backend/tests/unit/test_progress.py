"""
进度、导出后动作与日志初始化单元测试

每个模块完成后必须运行：pytest backend/tests/unit/test_progress.py -v
"""

import logging
import subprocess
from pathlib import Path

import pytest

from sheet_export.config import RuntimeConfig, configure_logging
from sheet_export.pipeline import LoggingProgressSink, open_folder


class TestLoggingProgressSink:
    """日志进度接收器测试"""

    def test_clamps_percent(self):
        sink = LoggingProgressSink()
        sink.update(150)
        assert sink.percent == 100.0
        sink.update(-5)
        assert sink.percent == 0.0

    def test_status_logged(self, caplog: pytest.LogCaptureFixture):
        sink = LoggingProgressSink(title="Export")
        with caplog.at_level(logging.INFO, logger="sheet_export.pipeline.progress"):
            sink.set_status("Processing: A101")
        assert sink.status == "Processing: A101"
        assert "Export: Processing: A101" in caplog.text

    def test_close_idempotent(self):
        sink = LoggingProgressSink()
        sink.close()
        sink.close()
        assert sink.closed


class TestOpenFolder:
    """打开输出目录测试"""

    def test_failure_not_raised(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        """测试文件管理器不可用时只返回False"""
        monkeypatch.setattr("sheet_export.pipeline.progress.sys.platform", "linux")

        def _fail(*args, **kwargs):
            raise FileNotFoundError("xdg-open")

        monkeypatch.setattr("sheet_export.pipeline.progress.subprocess.run", _fail)
        assert open_folder(temp_dir) is False

    def test_success(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        calls: list[list[str]] = []
        monkeypatch.setattr("sheet_export.pipeline.progress.sys.platform", "darwin")
        monkeypatch.setattr(
            "sheet_export.pipeline.progress.subprocess.run",
            lambda cmd, **kwargs: calls.append(cmd) or subprocess.CompletedProcess(cmd, 0),
        )
        assert open_folder(temp_dir) is True
        assert calls == [["open", str(temp_dir)]]


class TestConfigureLogging:
    """日志初始化测试"""

    def test_level_and_file_handler(self, temp_dir: Path):
        config = RuntimeConfig(
            storage_dir=temp_dir,
            logging={"log_level": "debug", "log_to_file": True, "log_dir": temp_dir / "logs"},
        )
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        try:
            configure_logging(config)

            assert root.level == logging.DEBUG
            assert any(isinstance(h, logging.FileHandler) for h in root.handlers)
            assert (temp_dir / "logs").is_dir()
        finally:
            for handler in root.handlers:
                if handler not in handlers:
                    handler.close()
            root.handlers[:] = handlers
            root.setLevel(level)
