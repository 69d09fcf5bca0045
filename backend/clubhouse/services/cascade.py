"""Best-effort cascade: collect children, remove each, aggregate failures, proceed.

Each child removal commits on its own, so one failure leaves earlier removals
in place and never blocks the parent deletion that follows.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clubhouse.errors import ClubhouseError

logger = logging.getLogger(__name__)


@dataclass
class CascadeReport:
    label: str
    attempted: int = 0
    removed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed

    def as_dict(self) -> dict:
        return {
            "label": self.label,
            "attempted": self.attempted,
            "removed": list(self.removed),
            "orphaned": sorted(self.failed),
        }


def run_cascade(
    db: Session,
    label: str,
    child_ids: Iterable[str],
    remove_one: Callable[[str], None],
) -> CascadeReport:
    report = CascadeReport(label=label)
    for child_id in child_ids:
        report.attempted += 1
        try:
            remove_one(child_id)
            db.commit()
        except (SQLAlchemyError, ClubhouseError) as exc:
            db.rollback()
            report.failed[child_id] = str(exc)
            continue
        report.removed.append(child_id)

    if report.failed:
        logger.warning(
            "%s: %d of %d children left orphaned: %s",
            label, len(report.failed), report.attempted, ", ".join(sorted(report.failed)),
        )
    return report
