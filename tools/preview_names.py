import argparse
import json
import sys
from pathlib import Path


def _add_backend_to_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    backend_root = repo_root / "backend"
    if str(backend_root) not in sys.path:
        sys.path.insert(0, str(backend_root))


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Preview final file names for a naming rule."
    )
    parser.add_argument(
        "sheets",
        help="图纸JSON文件：[{id, number, name, attributes}, ...]",
    )
    parser.add_argument(
        "--rule",
        default="{Sheet Number}-{Sheet Name}",
        help="命名规则（默认：{Sheet Number}-{Sheet Name}）",
    )
    parser.add_argument(
        "--format",
        type=int,
        default=0,
        choices=[0, 1, 2],
        help="导出格式：0=PDF, 1=DWG, 2=Both",
    )
    parser.add_argument(
        "--project",
        default="",
        help="可选：项目JSON文件 {number, name, attributes}",
    )
    args = parser.parse_args()

    _add_backend_to_path()
    from sheet_export.models import ExportFormat, ProjectInfo, SheetRef  # type: ignore
    from sheet_export.naming import NamingRuleEngine  # type: ignore

    with open(args.sheets, encoding="utf-8") as f:
        sheets = [SheetRef(**item) for item in json.load(f)]
    if not sheets:
        print("未找到图纸")
        return 1

    project = None
    if args.project:
        with open(args.project, encoding="utf-8") as f:
            project = ProjectInfo(**json.load(f))

    engine = NamingRuleEngine()
    export_format = ExportFormat.from_mode(args.format)
    tokens = engine.tokens(args.rule)
    print(f"rule={args.rule} tokens={tokens}")

    for sheet in sheets:
        print(f"{sheet.number}: {engine.preview(args.rule, sheet, project, export_format)}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
