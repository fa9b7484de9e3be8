# app/constants/activity_codes.py

from enum import Enum


class ActivityCode(str, Enum):
    # ---------------- AUTH ----------------
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"

    # ---------------- CRM ----------------
    UPDATE_OPPORTUNITY_STATUS = "UPDATE_OPPORTUNITY_STATUS"
    CONVERT_LEAD_TO_QUOTATION = "CONVERT_LEAD_TO_QUOTATION"

    # ---------------- QUOTATIONS ----------------
    UPDATE_QUOTATION_STATUS = "UPDATE_QUOTATION_STATUS"
    CONVERT_QUOTATION_TO_SALES_ORDER = "CONVERT_QUOTATION_TO_SALES_ORDER"

    # ---------------- SALES ORDERS ----------------
    UPDATE_SALES_ORDER = "UPDATE_SALES_ORDER"
    CHANGE_SALES_ORDER_STATUS = "CHANGE_SALES_ORDER_STATUS"
    CANCEL_SALES_ORDER = "CANCEL_SALES_ORDER"
    REQUEST_REOPEN = "REQUEST_REOPEN"
    APPROVE_REOPEN = "APPROVE_REOPEN"
    REJECT_REOPEN = "REJECT_REOPEN"

    # ---------------- PURCHASING ----------------
    CREATE_PURCHASE_ORDER = "CREATE_PURCHASE_ORDER"
    APPROVE_PURCHASE_ORDER = "APPROVE_PURCHASE_ORDER"
