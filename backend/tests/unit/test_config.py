"""
配置加载单元测试

每个模块完成后必须运行：pytest backend/tests/unit/test_config.py -v
"""

import json
from pathlib import Path

import pytest

from sheet_export.config import (
    ExportSettings,
    NamingRulePreset,
    RuntimeConfig,
    SettingsStore,
    load_preset,
    save_preset,
)
from sheet_export.interfaces import ConfigError

RUNTIME_YAML = """
runtime_options:
  storage_dir: data
  reconcile:
    initial_wait_sec:
      default: 0.5
      desc: 首次等待
    max_attempts: 4
  naming:
    unknown_token: NA
  logging:
    log_level: DEBUG
"""


class TestRuntimeConfig:
    """运行期配置测试"""

    def test_default_config(self, runtime_config: RuntimeConfig):
        """测试默认配置"""
        assert runtime_config.reconcile.initial_wait_sec == 1.0
        assert runtime_config.reconcile.max_attempts == 3
        assert runtime_config.reconcile.retry_backoff_sec == 1.5
        assert runtime_config.naming.temp_token_prefix == "ZEN_"
        assert runtime_config.naming.unknown_token == "Unknown"

    def test_worst_case_reconcile(self, runtime_config: RuntimeConfig):
        """测试单个文件对账最长阻塞 ≈ 4s"""
        assert runtime_config.worst_case_reconcile_sec == pytest.approx(4.0)

    def test_from_yaml(self, temp_dir: Path):
        """测试YAML加载与 {default: x} 展平"""
        path = temp_dir / "sheet_export.yaml"
        path.write_text(RUNTIME_YAML, encoding="utf-8")

        config = RuntimeConfig.from_yaml(path)

        assert config.reconcile.initial_wait_sec == 0.5
        assert config.reconcile.max_attempts == 4
        assert config.reconcile.retry_backoff_sec == 1.5
        assert config.naming.unknown_token == "NA"
        assert config.logging.log_level == "DEBUG"
        # 相对路径按配置文件目录解析
        assert config.storage_dir == (temp_dir / "data").resolve()
        assert config.logging.log_dir == (temp_dir / "data" / "logs").resolve()

    def test_from_yaml_missing_file(self, temp_dir: Path):
        config = RuntimeConfig.from_yaml(temp_dir / "missing.yaml")
        assert config.reconcile.max_attempts == 3

    def test_env_override(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        """测试环境变量覆盖YAML"""
        path = temp_dir / "sheet_export.yaml"
        path.write_text(RUNTIME_YAML, encoding="utf-8")
        monkeypatch.setenv("SHEET_EXPORT_RECONCILE__MAX_ATTEMPTS", "5")

        config = RuntimeConfig.from_yaml(path)

        assert config.reconcile.max_attempts == 5
        assert config.reconcile.initial_wait_sec == 0.5

    def test_settings_path(self, runtime_config: RuntimeConfig, temp_dir: Path):
        assert runtime_config.get_settings_path() == temp_dir / "storage" / "BatchPrintSettings.json"


class TestSettingsStore:
    """导出设置持久化测试"""

    def test_defaults_when_missing(self, runtime_config: RuntimeConfig):
        settings = SettingsStore(config=runtime_config).load()
        assert settings.last_naming_rule == "{Sheet Number}-{Sheet Name}"
        assert settings.last_separator == "-"
        assert settings.last_output_folder == ""

    def test_remember_and_load(self, runtime_config: RuntimeConfig, temp_dir: Path):
        """测试记录后再次读取"""
        store = SettingsStore(config=runtime_config)
        path = store.remember("{Sheet Number}_{Sheet Name}", "_", temp_dir)

        assert path.exists()
        settings = store.load()
        assert settings.last_naming_rule == "{Sheet Number}_{Sheet Name}"
        assert settings.last_separator == "_"
        assert settings.last_output_folder == str(temp_dir)

    def test_corrupt_file_falls_back(self, runtime_config: RuntimeConfig):
        """测试损坏文件回落默认值"""
        store = SettingsStore(config=runtime_config)
        store.settings_path.parent.mkdir(parents=True)
        store.settings_path.write_text("{not json", encoding="utf-8")

        assert store.load() == store.defaults()

    def test_wrong_shape_falls_back(self, runtime_config: RuntimeConfig):
        store = SettingsStore(config=runtime_config)
        store.settings_path.parent.mkdir(parents=True)
        store.settings_path.write_text("[1, 2]", encoding="utf-8")

        assert store.load() == store.defaults()

    def test_empty_values_filled(self, runtime_config: RuntimeConfig):
        store = SettingsStore(config=runtime_config)
        store.save(ExportSettings(last_naming_rule="", last_separator=""))

        settings = store.load()
        assert settings.last_naming_rule == "{Sheet Number}-{Sheet Name}"
        assert settings.last_separator == "-"

    def test_stale_folder_dropped(self, runtime_config: RuntimeConfig, temp_dir: Path):
        """测试上次目录已删除时不再回填"""
        store = SettingsStore(config=runtime_config)
        store.remember("{Sheet Number}", "-", temp_dir / "gone")

        assert store.load().last_output_folder == ""


class TestNamingRulePreset:
    """命名规则预设测试"""

    def test_save_and_load(self, temp_dir: Path):
        path = save_preset(NamingRulePreset(rule="{Sheet Number}_{Drawn By}", separator="_"), temp_dir / "p.json")
        preset = load_preset(path)
        assert preset.rule == "{Sheet Number}_{Drawn By}"
        assert preset.separator == "_"

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(ConfigError):
            load_preset(temp_dir / "missing.json")

    def test_malformed_file(self, temp_dir: Path):
        path = temp_dir / "bad.json"
        path.write_text(json.dumps({"rule": ["not", "a", "string"]}), encoding="utf-8")
        with pytest.raises(ConfigError):
            load_preset(path)
