"""
图纸与项目模型 - 宿主文档的只读快照

SheetRef 在一次批次运行中不可变；宿主适配器可继承并重写 lookup()
以直接查询宿主参数。
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..interfaces import IAttributeProvider


class SheetRef(BaseModel, IAttributeProvider):
    """宿主图纸句柄"""
    id: str = Field(..., description="宿主分配的稳定ID")
    number: str = Field(..., description="图号（批次过渡期间不保证唯一）")
    name: str = Field("", description="图名")
    attributes: dict[str, str | None] = Field(default_factory=dict, description="图纸参数")

    model_config = {"frozen": True}

    def lookup(self, name: str) -> str | None:
        """查询图纸参数；参数存在但无值时返回空字符串"""
        if name not in self.attributes:
            return None
        return self.attributes[name] or ""

    @property
    def label(self) -> str:
        """日志/报告用的可读标签"""
        return f"{self.number} - {self.name}" if self.name else self.number


class ProjectInfo(BaseModel, IAttributeProvider):
    """项目信息（项目级属性提供者）"""
    number: str = ""
    name: str = ""
    attributes: dict[str, str | None] = Field(default_factory=dict)

    model_config = {"frozen": True}

    def lookup(self, name: str) -> str | None:
        if name not in self.attributes:
            return None
        return self.attributes[name] or ""
