"""
命名规则引擎 - 扁平 {token} 模板解析与文件名清洗

职责：
1. 解析命名规则中的 {参数名} 片段
2. 按优先级取值：图纸参数 → 图纸内置别名 → 项目参数 → 项目内置别名 → "Unknown"
3. 清洗非法文件名字符

纯函数，无I/O；各 token 独立取值，替换结果不再二次展开。

测试要点：
- test_token_precedence: 取值优先级
- test_sanitize_idempotent: 清洗幂等
- test_empty_rule_fallback: 空规则回落
"""

from __future__ import annotations

import re

from ..config import RuntimeConfig, get_config
from ..models import ExportFormat, ProjectInfo, SheetRef

TOKEN_PATTERN = re.compile(r"\{(.*?)\}")

# Windows 文件名非法字符（跨平台取最严格集合）
INVALID_FILENAME_CHARS = frozenset('<>:"/\\|?*') | frozenset(chr(i) for i in range(32))

SHEET_NUMBER = "Sheet Number"
SHEET_NAME = "Sheet Name"
PROJECT_NUMBER = "Project Number"
PROJECT_NAME = "Project Name"


class NamingRuleEngine:
    """命名规则引擎"""

    def __init__(self, config: RuntimeConfig | None = None):
        config = config or get_config()
        self.unknown_token = config.naming.unknown_token
        self.fallback_name = config.naming.fallback_name

    def render(
        self,
        rule: str,
        sheet: SheetRef | None,
        project: ProjectInfo | None,
        fallback: str | None = None,
    ) -> str:
        """
        解析命名规则

        Args:
            rule: 命名规则，如 "{Sheet Number}-{Sheet Name}"
            sheet: 图纸；为None时只做项目级解析（合并导出）
            project: 项目信息
            fallback: 规则为空或结果为空白时的回落名

        Returns:
            未清洗的名称
        """
        fallback = fallback if fallback is not None else self.fallback_name
        if not rule:
            return fallback

        def _replace(match: re.Match[str]) -> str:
            return self.resolve_token(match.group(1), sheet, project)

        rendered = TOKEN_PATTERN.sub(_replace, rule)
        if not rendered.strip():
            return fallback
        return rendered

    def resolve_token(
        self, token: str, sheet: SheetRef | None, project: ProjectInfo | None
    ) -> str:
        """单个 token 取值"""
        if sheet is not None:
            value = sheet.lookup(token)
            if value is not None:
                return value
            if token == SHEET_NUMBER:
                return sheet.number
            if token == SHEET_NAME:
                return sheet.name

        if project is not None:
            value = project.lookup(token)
            if value is not None:
                return value
            if token == PROJECT_NUMBER:
                return project.number
            if token == PROJECT_NAME:
                return project.name

        return self.unknown_token

    def sanitize(self, name: str) -> str:
        """非法字符替换为 "_"，空串返回 "Unnamed" """
        if not name:
            return self.fallback_name
        return "".join("_" if c in INVALID_FILENAME_CHARS else c for c in name)

    def final_name(
        self,
        rule: str,
        sheet: SheetRef | None,
        project: ProjectInfo | None,
        fallback: str | None = None,
    ) -> str:
        """解析并清洗，得到最终文件基名"""
        return self.sanitize(self.render(rule, sheet, project, fallback))

    def preview(
        self,
        rule: str,
        sheet: SheetRef,
        project: ProjectInfo | None,
        export_format: ExportFormat,
    ) -> str:
        """导出前预览文件名（对话框列表用）"""
        if not rule.strip():
            rule = "{" + SHEET_NUMBER + "}"
        base = self.final_name(rule, sheet, project)
        ext = {
            ExportFormat.PDF: ".pdf",
            ExportFormat.DWG: ".dwg",
            ExportFormat.BOTH: ".pdf/.dwg",
        }[export_format]
        return base + ext

    @staticmethod
    def tokens(rule: str) -> list[str]:
        """列出规则中引用的参数名"""
        return TOKEN_PATTERN.findall(rule)
