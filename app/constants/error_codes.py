# app/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- MASTERS ----------------
    CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"

    # ---------------- CRM ----------------
    LEAD_NOT_FOUND = "LEAD_NOT_FOUND"
    OPPORTUNITY_INVALID_STATUS = "OPPORTUNITY_INVALID_STATUS"
    LEAD_ALREADY_CONVERTED = "LEAD_ALREADY_CONVERTED"

    # ---------------- QUOTATIONS ----------------
    QUOTATION_NOT_FOUND = "QUOTATION_NOT_FOUND"
    QUOTATION_INVALID_STATE = "QUOTATION_INVALID_STATE"
    QUOTATION_ALREADY_CONVERTED = "QUOTATION_ALREADY_CONVERTED"

    # ---------------- SALES ORDERS ----------------
    SALES_ORDER_NOT_FOUND = "SALES_ORDER_NOT_FOUND"
    SALES_ORDER_INVALID_TRANSITION = "SALES_ORDER_INVALID_TRANSITION"
    PERMISSIONS_STALE = "PERMISSIONS_STALE"
    REOPEN_ALREADY_PENDING = "REOPEN_ALREADY_PENDING"
    REOPEN_NOT_PENDING = "REOPEN_NOT_PENDING"

    # ---------------- PURCHASING ----------------
    PURCHASE_ORDER_NOT_FOUND = "PURCHASE_ORDER_NOT_FOUND"
    PURCHASE_ORDER_INVALID_STATE = "PURCHASE_ORDER_INVALID_STATE"
