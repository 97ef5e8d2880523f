"""
临时标识分配器 - 导出期间代替图纸最终名称的短标识

格式："<保留前缀><8位十六进制>"，如 ZEN_1a2b3c4d。
- 同一批次内已分配的标识会被记住，重复时重新抽取，批内唯一由构造保证
- 随机部分空间为 16^8（约4.3e9），只影响跨批次残留文件的误匹配概率：
  目录中有 k 个残留临时文件时，单次误匹配概率约 k / 4.3e9
- 保留前缀用于区分用户图号/图名，避免对账时误命中
"""

from __future__ import annotations

import uuid

from ..config import RuntimeConfig, get_config
from ..interfaces import ConfigError
from .rule_engine import INVALID_FILENAME_CHARS

TOKEN_BODY_LENGTH = 8


class TempTokenAllocator:
    """临时标识分配器（每个批次一个实例或 reset()）"""

    def __init__(self, prefix: str | None = None, config: RuntimeConfig | None = None):
        if prefix is None:
            prefix = (config or get_config()).naming.temp_token_prefix
        if not prefix or any(c in INVALID_FILENAME_CHARS for c in prefix):
            raise ConfigError(f"临时标识前缀无效: {prefix!r}")
        self.prefix = prefix
        self._issued: set[str] = set()

    def new_token(self) -> str:
        """分配新标识（批内不重复）"""
        while True:
            token = self.prefix + uuid.uuid4().hex[:TOKEN_BODY_LENGTH]
            if token not in self._issued:
                self._issued.add(token)
                return token

    def is_temp_name(self, filename: str) -> bool:
        """文件名是否带保留前缀"""
        return self.prefix in filename

    @property
    def issued_count(self) -> int:
        return len(self._issued)

    def reset(self) -> None:
        """开始新批次"""
        self._issued.clear()
