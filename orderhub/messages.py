from __future__ import annotations

from typing import Dict


MESSAGES: Dict[str, Dict[str, str]] = {
    "success": {
        "user_created": "User created successfully",
        "user_updated": "User updated successfully",
        "user_deactivated": "User deactivated successfully",
        "order_created": "Order created successfully",
        "order_updated": "Order updated successfully",
        "order_status_updated": "Order status updated successfully",
        "order_cancelled": "Order cancelled successfully",
        "user_synced": "User data synchronized successfully",
        "orders_synced": "Order data synchronized successfully",
        "users_synced": "All users synchronized successfully",
        "stats_compared": "Statistics comparison retrieved successfully",
        "consistency_validated": "Data consistency validation completed",
    },
    "error": {
        "action_invalid": "Invalid action for this operation.",
        "amount_invalid": "Order amount must be greater than zero",
        "consistency_check_failed": "Failed to validate data consistency",
        "days_out_of_range": "Days must be between 1 and 365",
        "email_already_registered": "User with this email already exists",
        "email_required": "A valid email is required",
        "external_service_unavailable": "External service unavailable",
        "id_required": "ID is required",
        "invalid_status": "Invalid order status",
        "invalid_status_transition": "Invalid status transition",
        "name_invalid": "First and last name must have at least 2 characters",
        "order_cancel_rejected": "Cannot cancel order that is already shipped or delivered",
        "order_delete_rejected": "Cannot delete order that is in progress or completed",
        "order_not_found": "Order not found",
        "report_type_invalid": "Invalid report type. Must be: daily, weekly, or monthly",
        "user_inactive": "Cannot create order for inactive user",
        "user_not_found": "User not found",
        "user_not_found_in_peer": "User not found in Service A",
        "unexpected_error": "The operation could not be completed. Please try again shortly.",
        "validation_failed": "Validation failed",
    },
}


def get_message(category: str, key: str, default: str | None = None) -> str:
    message = MESSAGES.get(category, {}).get(key)
    if message:
        return message
    if default is not None:
        return default
    return key


def error_message(key: str, default: str | None = None) -> str:
    return get_message("error", key, default)


def success_message(key: str, default: str | None = None) -> str:
    return get_message("success", key, default)
