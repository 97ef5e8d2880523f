"""
图纸批量导出 - 核心模块

模块结构：
- config/     运行期配置与导出设置持久化
- models/     数据模型定义
- naming/     命名规则解析与临时标识
- pipeline/   批次编排、文件对账、报告
"""

__version__ = "0.1.0"
