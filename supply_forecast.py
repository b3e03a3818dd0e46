"""
Supply Forecast Module

Request-level wrapper around the replenishment planner, used by the
inventory API's forecast endpoint:
- Validates the forecast payload (part name, vendor lead time, optional data)
- Falls back to the demo catalogue when the payload carries no data
- Plans over a 90-day window with 7 safety days (overridable per deployment
  through REPLENISHMENT_* environment variables, passed on as explicit options)
- Narrows the plan to the requested part
- Adds a descriptive shortage estimate with a data-driven confidence score
"""

from datetime import datetime, timedelta
from typing import Dict, Tuple

import numpy as np
import pandas as pd

from business_rules import (
    FORECAST_ESTIMATE_RULES,
    get_forecast_planner_options,
    get_transaction_column_map,
)
from demo_data import get_demo_parts, get_demo_transactions
from replenishment_planning import (
    find_recommendation,
    generate_replenishment_plan,
    plan_to_records,
    records_to_frame,
)


class ForecastRequestError(ValueError):
    """Raised when a forecast payload is missing or has invalid fields."""


def _is_number(value) -> bool:
    return (
        isinstance(value, (int, float, np.integer, np.floating))
        and not isinstance(value, bool)
        and np.isfinite(value)
    )


def validate_forecast_request(payload) -> Dict:
    """
    Validate a forecast request payload.

    Fields:
        partName (str, required)
        vendorLeadTimeDays (number >= 0, default 14 or REPLENISHMENT_LEAD_TIME_DAYS)
        seasonalVariations (str, optional; accepted for compatibility, unused)
        parts / transactions (optional; only used when they are lists)

    Returns:
        Normalized request dict

    Raises:
        ForecastRequestError: on any invalid field
    """
    if not isinstance(payload, dict):
        raise ForecastRequestError("Request body must be an object")

    part_name = payload.get('partName')
    if not isinstance(part_name, str):
        raise ForecastRequestError("partName is required and must be a string")

    lead_time = payload.get('vendorLeadTimeDays')
    if lead_time is None:
        lead_time = get_forecast_planner_options()["default_vendor_lead_time_days"]
    elif not _is_number(lead_time):
        raise ForecastRequestError("vendorLeadTimeDays must be a number")
    elif lead_time < 0:
        raise ForecastRequestError("vendorLeadTimeDays must be greater than or equal to 0")

    seasonal = payload.get('seasonalVariations')
    if seasonal is not None and not isinstance(seasonal, str):
        raise ForecastRequestError("seasonalVariations must be a string")

    parts = payload.get('parts')
    transactions = payload.get('transactions')

    return {
        'part_name': part_name,
        'vendor_lead_time_days': lead_time,
        'seasonal_variations': seasonal,
        'parts': parts if isinstance(parts, list) else None,
        'transactions': transactions if isinstance(transactions, list) else None,
    }


def calculate_confidence_score(transaction_count: int, vendor_lead_time_days: float) -> float:
    """
    Confidence in the shortage estimate (0.45 - 0.95).

    Formula:
    Data Quality = min(transaction_count / 10, 1)
    Lead Time Variability = max(0.1, 1 - lead_time / 30)
    Confidence = clamp(0.6 * Data Quality + 0.4 * Lead Time Variability, 0.45, 0.95)

    More history and shorter lead times both raise confidence.
    """
    rules = FORECAST_ESTIMATE_RULES["confidence"]

    data_quality = min(transaction_count / rules["full_confidence_transaction_count"], 1)
    lead_time_variability = max(
        rules["min_lead_time_variability"],
        1 - (vendor_lead_time_days / rules["lead_time_horizon_days"])
    )
    score = (data_quality * rules["data_quality_weight"]
             + lead_time_variability * rules["lead_time_weight"])
    return min(rules["cap"], max(rules["floor"], score))


def estimate_shortage(transactions, part_name: str, vendor_lead_time_days: float, now=None) -> Dict:
    """
    Descriptive shortage estimate for one part.

    Counts every transaction for the part (no lookback window) and projects
    the shortage date one lead time from now.

    Returns:
        dict with predictedShortageDate (ISO timestamp), confidenceScore, reasoning
    """
    now = pd.Timestamp(now) if now is not None else pd.Timestamp(datetime.now())

    transactions_df = records_to_frame(transactions, get_transaction_column_map())
    if transactions_df.empty or 'part_name' not in transactions_df.columns:
        transaction_count = 0
    else:
        transaction_count = int((transactions_df['part_name'] == part_name).sum())

    confidence = calculate_confidence_score(transaction_count, vendor_lead_time_days)
    predicted_date = now + timedelta(days=float(vendor_lead_time_days))

    return {
        'predictedShortageDate': predicted_date.isoformat(),
        'confidenceScore': confidence,
        'reasoning': f"Based on {transaction_count} transactions and {vendor_lead_time_days}-day lead time",
    }


def run_supply_forecast(payload, today=None, now=None) -> Dict:
    """
    Run a full forecast request.

    Args:
        payload: Request body (see validate_forecast_request)
        today: Reference date for the planner (default: current date)
        now: Reference timestamp for the shortage estimate (default: now)

    Returns:
        dict with plan (records), selectedPart (record or None), estimate, logs
    """
    request = validate_forecast_request(payload)
    planner_options = get_forecast_planner_options()

    logs = []
    if request['parts'] is None:
        logs.append("INFO: No parts in request - using demo catalogue")
        parts = get_demo_parts()
    else:
        parts = request['parts']

    if request['transactions'] is None:
        logs.append("INFO: No transactions in request - using demo transactions")
        transactions = get_demo_transactions()
    else:
        transactions = request['transactions']

    plan_logs, plan_df = generate_replenishment_plan(
        parts,
        transactions,
        lookback_days=planner_options["lookback_days"],
        vendor_lead_time_days=request['vendor_lead_time_days'],
        safety_days=planner_options["safety_days"],
        today=today
    )
    logs.extend(plan_logs)

    selected = find_recommendation(plan_df, request['part_name'])
    if selected is None:
        logs.append(f"INFO: '{request['part_name']}' does not need replenishment")

    return {
        'plan': plan_to_records(plan_df),
        'selectedPart': selected.to_record() if selected is not None else None,
        'estimate': estimate_shortage(
            transactions, request['part_name'], request['vendor_lead_time_days'], now
        ),
        'logs': logs,
    }


def handle_forecast_request(payload, today=None, now=None) -> Tuple[int, Dict]:
    """
    Map a forecast request to (status_code, body) for the hosting server.

    Caller-data failures (invalid payload, malformed records) become a 400
    with an 'error' message; there is nothing transient to retry.
    """
    try:
        return 200, run_supply_forecast(payload, today=today, now=now)
    except (ValueError, KeyError, TypeError) as e:
        message = str(e) or 'Failed to forecast'
        return 400, {'error': message}
