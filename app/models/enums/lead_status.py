# app/models/enums/lead_status.py
import enum


class LeadStatus(str, enum.Enum):
    new = "lead_new"
    contacted = "lead_contacted"
    interested = "lead_interested"
    qualified = "lead_qualified"
    unqualified = "lead_unqualified"
    converted = "lead_converted"


class OpportunityStatus(str, enum.Enum):
    prospecting = "prospecting"
    lost = "opp_lost"
    sq = "opp_sq"
