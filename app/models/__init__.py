from app.models.base import Base
from app.models.hospitality import Hospitality
from app.models.hospitality_assignment import HospitalityAssignment
from app.models.legacy import LegacyTicketHospitality, LegacyTicketMarkup
from app.models.markup_rule import MarkupRule

__all__ = [
    "Base",
    "Hospitality",
    "HospitalityAssignment",
    "LegacyTicketHospitality",
    "LegacyTicketMarkup",
    "MarkupRule",
]
