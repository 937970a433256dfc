"""CLI demo for guarded Excel exports."""

# Module responsibilities:
# - Build sample annual-assessment rows and export them once per reviewer role.
# - Show exclusions, editable overrides and password protection side by side.

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional

from xlguard_io import DropdownHandler, ExcelWriter, LockHandler, column
from xlguard_io.utils.log import get_logger
from xlguard_io.utils.paths import ensure_default_structure

logger = get_logger("tools.demo_excel")

LOCKED_NOTE = "不要修改！！！"


@dataclass
class AssessmentItem:
    performanceSettingItemId: Optional[int] = column("明细标识", editable=False, comment=LOCKED_NOTE)
    id: Optional[int] = column("主键", editable=False, comment=LOCKED_NOTE)
    category: Optional[str] = column("指标类型", editable=False)
    indicatorType: Optional[str] = column("关键绩效指标", editable=False)
    indicatorDetail: Optional[str] = column("指标值(完成时限与成果标志)", editable=False)
    scoreRule: Optional[str] = column("计分规则", editable=False)
    difficulty: Optional[str] = column("工作难度系数", editable=False, key="difficulty")
    cycle: Optional[str] = column("分配时点", editable=False, options=["Monthly", "Quarterly", "Annual"])
    type: Optional[int] = column(ignore=True)
    weight: Optional[str] = column("权重", editable=False)
    selfRating: Optional[Decimal] = column("自评分数", editable=False)
    selfComment: Optional[str] = column("自评描述", editable=False)
    auditRating: Optional[Decimal] = column("审核分数", editable=False)
    auditComment: Optional[str] = column("审核描述", editable=False)
    finalRating: Optional[Decimal] = column("审定分数", editable=False)
    finalRatingComment: Optional[str] = column("审定描述", editable=False)


def sample_items() -> list[AssessmentItem]:
    return [
        AssessmentItem(1, 2, "Sales", "Revenue", "Total sales revenue for the year",
                       "Score based on percentage of target achieved", "Medium", "Annual", 1, "30%",
                       Decimal("85.5"), "Exceeded target by 5%", Decimal("87.0"),
                       "Good performance, slightly above expectations", Decimal("86.25"),
                       "Final rating is an average of self and audit ratings"),
        AssessmentItem(3, 4, "Marketing", "Campaign Effectiveness", "Number of successful marketing campaigns",
                       "Score based on number of successful campaigns", "High", "Quarterly", 2, "20%",
                       Decimal("78.0"), "Met most of the campaign goals", Decimal("80.0"),
                       "Slightly below expectations but acceptable", Decimal("79.0"),
                       "Final rating is an average of self and audit ratings"),
        AssessmentItem(5, 6, "Customer Service", "Customer Satisfaction", "Customer satisfaction survey results",
                       "Score based on customer satisfaction index", "Low", "Monthly", 3, "10%",
                       Decimal("92.0"), "High customer satisfaction levels", Decimal("93.0"),
                       "Excellent performance, above expectations", Decimal("92.5"),
                       "Final rating is an average of self and audit ratings"),
    ]


# role -> (editable override, excluded fields, password)
ROLES: dict[str, tuple[set[str], list[str], Optional[str]]] = {
    "draft": (
        {"selfRating", "selfComment"},
        ["id", "auditRating", "auditComment", "finalRating", "finalRatingComment"],
        None,
    ),
    "supervisor": ({"auditRating", "auditComment"}, ["finalRating", "finalRatingComment"], None),
    "final": ({"finalRating", "finalRatingComment"}, [], "admin123"),
}

DIFFICULTY_OPTIONS = {"difficulty": ["Low", "Medium", "High"]}


def export_role(role: str, out_dir: Path) -> Path:
    editable, excluded, password = ROLES[role]
    writer = ExcelWriter(out_dir / f"assessment_{role}.xlsx", AssessmentItem, exclude_fields=excluded)
    writer.register_handler(DropdownHandler(AssessmentItem, DIFFICULTY_OPTIONS))
    writer.register_handler(LockHandler(AssessmentItem, editable, protect_password=password))
    writer.write_sheet(sample_items(), "年度考核")
    return writer.finish()


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Guarded Excel export demo")
    parser.add_argument("--out-dir", type=Path, default=None, help="Directory for generated workbooks")
    parser.add_argument("--role", choices=sorted(ROLES), action="append", help="Export only these roles")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    out_dir = args.out_dir or ensure_default_structure()["out"]
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        outputs = [export_role(role, out_dir) for role in (args.role or sorted(ROLES))]
    except OSError as exc:
        logger.error("Demo export failed", extra={"error": str(exc)})
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("Outputs:")
    for path in outputs:
        print(f"  - {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
