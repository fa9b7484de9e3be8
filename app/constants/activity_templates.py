from app.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- AUTH ----------------
    ActivityCode.LOGIN:
        "{actor_role} ({actor_email}) logged in",

    ActivityCode.LOGOUT:
        "{actor_role} ({actor_email}) logged out",

    # ---------------- CRM ----------------
    ActivityCode.UPDATE_OPPORTUNITY_STATUS:
        "{actor_role} ({actor_email}) changed opportunity {target_name} status "
        "from {old_status} to {new_status}",

    ActivityCode.CONVERT_LEAD_TO_QUOTATION:
        "{actor_role} ({actor_email}) converted opportunity {source_name} to quotation {target_name}",

    # ---------------- QUOTATIONS ----------------
    ActivityCode.UPDATE_QUOTATION_STATUS:
        "{actor_role} ({actor_email}) changed quotation {target_name} to {new_status} ({new_stage})",

    ActivityCode.CONVERT_QUOTATION_TO_SALES_ORDER:
        "{actor_role} ({actor_email}) converted quotation {source_name} to sales order {target_name}",

    # ---------------- SALES ORDERS ----------------
    ActivityCode.UPDATE_SALES_ORDER:
        "{actor_role} ({actor_email}) updated sales order {target_name}: {changes}",

    ActivityCode.CHANGE_SALES_ORDER_STATUS:
        "{actor_role} ({actor_email}) moved sales order {target_name} "
        "from {old_status} to {new_status}",

    ActivityCode.CANCEL_SALES_ORDER:
        "{actor_role} ({actor_email}) cancelled sales order {target_name}",

    ActivityCode.REQUEST_REOPEN:
        "{actor_role} ({actor_email}) requested reopen of sales order {target_name}",

    ActivityCode.APPROVE_REOPEN:
        "{actor_role} ({actor_email}) reopened sales order {target_name} to NEW",

    ActivityCode.REJECT_REOPEN:
        "{actor_role} ({actor_email}) rejected reopen request of sales order {target_name}",

    # ---------------- PURCHASING ----------------
    ActivityCode.CREATE_PURCHASE_ORDER:
        "{actor_role} ({actor_email}) created purchase order {target_name} for sales order {source_name}",

    ActivityCode.APPROVE_PURCHASE_ORDER:
        "{actor_role} ({actor_email}) approved purchase order {target_name}",
}
