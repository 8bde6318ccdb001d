# Overview: Flask API routes for cash drawer operations; parses input and returns JSON responses.

# backend/daybook/routes/cash_drawer.py
"""
Cash Drawer API Routes

WHY: Daily cash reconciliation for the till.
Provides endpoints for the drawer lifecycle, expense logging, audit trail and history.

DESIGN:
- Lifecycle per business date: open -> close -> (reopen -> close)*
- Business date is always explicit in the request, never taken from the clock
- Expected cash is computed on every read from live cash sales

SECURITY:
- Every endpoint requires an actor (X-User-Id from the auth gateway)
- Reopen is restricted to Admin/SuperAdmin/Owner by the service policy
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import cash_drawer_service, drawer_history_service
from ..validation import DrawerError, ConcurrencyError
from ..decorators import require_actor
from daybook.time_utils import today


cash_drawer_bp = Blueprint("cash_drawer", __name__, url_prefix="/api/cash-drawer")


def _error_response(error: DrawerError):
    body = {"error": str(error), "code": error.code}
    if isinstance(error, ConcurrencyError):
        body["retryable"] = True
    return jsonify(body), error.status_code


def _currency_label() -> str:
    return current_app.config.get("CURRENCY_LABEL", "Rs.")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# =============================================================================
# DRAWER STATUS
# =============================================================================

@cash_drawer_bp.get("/status")
@require_actor
def get_status_route():
    """
    Get the drawer for a business date.

    Query: ?date=YYYY-MM-DD (required)

    Returns status "UNOPENED" (200) when no drawer exists for the date.
    """
    try:
        summary = cash_drawer_service.get_status(request.args.get("date"))
        return jsonify({"drawer": summary.to_dict(_currency_label())}), 200

    except DrawerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load drawer status")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# DRAWER LIFECYCLE
# =============================================================================

@cash_drawer_bp.post("/open")
@require_actor
def open_drawer_route():
    """
    Open the drawer for a business date.

    Request body:
    {
        "date": "2024-01-10",
        "opening_balance_cents": 500000  // Starting cash (e.g., Rs. 5,000.00)
    }

    Returns 409 if the date already has a drawer.
    """
    try:
        data = _json_body()

        summary = cash_drawer_service.open_drawer(
            business_date=data.get("date"),
            opening_balance_cents=data.get("opening_balance_cents"),
            actor=g.current_user,
        )

        return jsonify({"drawer": summary.to_dict(_currency_label())}), 201

    except DrawerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to open drawer")
        return jsonify({"error": "Internal server error"}), 500


@cash_drawer_bp.post("/expenses")
@require_actor
def add_expense_route():
    """
    Record a cash expense paid from the drawer.

    Request body:
    {
        "date": "2024-01-10",
        "amount_cents": 50000,
        "category": "SHOP_EXPENSE",   // or display label "Shop Expense"
        "description": "Cleaning supplies"  (optional)
    }
    """
    try:
        data = _json_body()

        expense = cash_drawer_service.add_expense(
            business_date=data.get("date"),
            amount_cents=data.get("amount_cents"),
            category=data.get("category"),
            description=data.get("description"),
            actor=g.current_user,
        )

        return jsonify({"expense": expense.to_dict()}), 201

    except DrawerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record drawer expense")
        return jsonify({"error": "Internal server error"}), 500


@cash_drawer_bp.post("/close")
@require_actor
def close_drawer_route():
    """
    Close the drawer with a physical count.

    Request body:
    {
        "date": "2024-01-10",
        "actual_cash_cents": 645000,  // Cash counted
        "notes": "Short by 50"  (optional)
    }

    difference = actual - (opening + cash sales - expenses)
    """
    try:
        data = _json_body()

        summary = cash_drawer_service.close_drawer(
            business_date=data.get("date"),
            actual_cash_cents=data.get("actual_cash_cents"),
            notes=data.get("notes"),
            actor=g.current_user,
        )

        return jsonify({"drawer": summary.to_dict(_currency_label())}), 200

    except DrawerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to close drawer")
        return jsonify({"error": "Internal server error"}), 500


@cash_drawer_bp.post("/reopen")
@require_actor
def reopen_drawer_route():
    """
    Reopen a closed drawer for corrections.

    Available to: admin, superadmin, owner

    Request body:
    {
        "date": "2024-01-10",
        "reason": "Counting mistake"
    }
    """
    try:
        data = _json_body()

        summary = cash_drawer_service.reopen_drawer(
            business_date=data.get("date"),
            reason=data.get("reason"),
            actor=g.current_user,
        )

        return jsonify({"drawer": summary.to_dict(_currency_label())}), 200

    except DrawerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to reopen drawer")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# AUDIT & HISTORY
# =============================================================================

@cash_drawer_bp.get("/audit")
@require_actor
def get_audit_log_route():
    """
    Audit trail for a business date, oldest first.

    Query: ?date=YYYY-MM-DD (required)

    Returns 404 if the date has no drawer.
    """
    try:
        entries = cash_drawer_service.get_audit_log(request.args.get("date"))
        return jsonify({"entries": [entry.to_dict() for entry in entries]}), 200

    except DrawerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load drawer audit log")
        return jsonify({"error": "Internal server error"}), 500


@cash_drawer_bp.get("/history")
@require_actor
def get_history_route():
    """
    Drawer history for a date range, newest first.

    Query:
    - start, end: YYYY-MM-DD (optional; default is the last
      CASH_DRAWER_HISTORY_DAYS days ending today)
    - order: "desc" (default) or "asc"

    Dates without a drawer are omitted.
    """
    try:
        start = request.args.get("start")
        end = request.args.get("end")
        descending = request.args.get("order", "desc").lower() != "asc"

        if start:
            rows = drawer_history_service.get_history(start, end or today(), descending=descending)
        else:
            rows = drawer_history_service.get_recent_history(
                current_app.config.get("CASH_DRAWER_HISTORY_DAYS", 30),
                end_date=end,
                descending=descending,
            )

        label = _currency_label()
        return jsonify({"history": [row.to_dict(label) for row in rows]}), 200

    except DrawerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load drawer history")
        return jsonify({"error": "Internal server error"}), 500
