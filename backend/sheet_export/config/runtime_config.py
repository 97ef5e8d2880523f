"""
运行期配置 - 读取 config/sheet_export.yaml

职责：
- 加载对账等待/重试、命名、日志等运行参数
- 提供环境变量覆盖机制
- 类型安全的配置访问
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class ReconcileConfig(BaseModel):
    """对账配置"""

    initial_wait_sec: float = 1.0
    max_attempts: int = 3
    retry_backoff_sec: float = 1.5


class NamingConfig(BaseModel):
    """命名配置"""

    temp_token_prefix: str = "ZEN_"
    unknown_token: str = "Unknown"
    fallback_name: str = "Unnamed"
    combined_fallback_pattern: str = "Batch_{date:%m%d}"
    default_rule: str = "{Sheet Number}-{Sheet Name}"
    default_separator: str = "-"


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: Path = Path("logs")


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    # 基础路径
    storage_dir: Path = Path("storage")
    config_path: Path = Path("config/sheet_export.yaml")

    # 各子配置
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "SHEET_EXPORT_",
        "env_nested_delimiter": "__",
        "arbitrary_types_allowed": True,
    }

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        # 环境变量优先于YAML
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})

        kwargs: dict[str, Any] = {
            "reconcile": cls._extract(runtime_opts, "reconcile"),
            "naming": cls._extract(runtime_opts, "naming"),
            "logging": cls._extract(runtime_opts, "logging"),
            "config_path": path,
        }
        if "storage_dir" in runtime_opts:
            kwargs["storage_dir"] = Path(runtime_opts["storage_dir"])

        config = cls(**kwargs)
        config._resolve_paths(base_dir=path.parent)
        return config

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key, {})
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result

    def _resolve_paths(self, base_dir: Path) -> None:
        """解析相对路径配置为绝对路径（基于配置文件所在目录）"""
        if not self.storage_dir.is_absolute():
            self.storage_dir = (base_dir / self.storage_dir).resolve()
        if not self.logging.log_dir.is_absolute():
            self.logging.log_dir = (self.storage_dir / self.logging.log_dir).resolve()

    @property
    def worst_case_reconcile_sec(self) -> float:
        """单个文件对账的最长阻塞时间"""
        rc = self.reconcile
        return rc.initial_wait_sec + max(rc.max_attempts - 1, 0) * rc.retry_backoff_sec

    def get_settings_path(self) -> Path:
        """导出设置文件路径"""
        return self.storage_dir / "BatchPrintSettings.json"


def configure_logging(config: RuntimeConfig | None = None) -> None:
    """按配置初始化根日志"""
    config = config or get_config()
    level = getattr(logging, config.logging.log_level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.logging.log_to_file:
        config.logging.log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.FileHandler(config.logging.log_dir / "sheet_export.log", encoding="utf-8")
        )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=handlers,
        force=True,
    )


# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        _config = RuntimeConfig.from_yaml(Path("config/sheet_export.yaml"))
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    path = yaml_path or "config/sheet_export.yaml"
    _config = RuntimeConfig.from_yaml(path)
    return _config
