"""
命名模块 - 命名规则解析与临时标识分配

子模块：
- rule_engine: {token} 模板解析 + 文件名清洗
- temp_token: 导出期临时标识
"""

from .rule_engine import INVALID_FILENAME_CHARS, NamingRuleEngine
from .temp_token import TempTokenAllocator

__all__ = [
    "NamingRuleEngine",
    "TempTokenAllocator",
    "INVALID_FILENAME_CHARS",
]
