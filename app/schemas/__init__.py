from app.schemas.hospitality import (
    AssignmentListOut,
    AssignmentOut,
    HospitalityOut,
    HospitalityStatsOut,
    ReplaceResultOut,
)
from app.schemas.markup import MarkupRuleListOut, MarkupRuleOut, TicketMarkupOut

__all__ = [
    "AssignmentListOut",
    "AssignmentOut",
    "HospitalityOut",
    "HospitalityStatsOut",
    "MarkupRuleListOut",
    "MarkupRuleOut",
    "ReplaceResultOut",
    "TicketMarkupOut",
]
