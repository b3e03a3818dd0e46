"""
Business Rules Configuration
Centralized definitions for fields, planning defaults, and estimate weights.
This file allows rules to be changed in one place without modifying tool code.
"""

import os

# ===== REPLENISHMENT PLANNING RULES =====

REPLENISHMENT_RULES = {
    "defaults": {
        "lookback_days": 90,            # Trailing window used to estimate daily rates
        "vendor_lead_time_days": 14,    # Order placement -> goods received
        "safety_days": 7,               # Extra coverage added on top of lead time
    },

    "clamps": {
        # Negative values are clamped to the minimum rather than rejected
        "min_vendor_lead_time_days": 0,
        "min_safety_days": 0,
        # Anything at or below this is rejected (division by lookback)
        "min_lookback_days_exclusive": 0,
    },

    "transaction_types": {
        "demand": "demand",
        "supply": "supply",
    },
}


# ===== FORECAST ESTIMATE RULES =====

FORECAST_ESTIMATE_RULES = {
    "planner_options": {
        # The forecast endpoint always plans over a fixed window and buffer
        "lookback_days": 90,
        "safety_days": 7,
        "default_vendor_lead_time_days": 14,
    },

    # Deployment overrides for the forecast endpoint's planner options.
    # The planner itself only ever sees explicit options.
    "environment_overrides": {
        "lookback_days": "REPLENISHMENT_LOOKBACK_DAYS",
        "default_vendor_lead_time_days": "REPLENISHMENT_LEAD_TIME_DAYS",
        "safety_days": "REPLENISHMENT_SAFETY_DAYS",
    },

    "confidence": {
        "full_confidence_transaction_count": 10,  # >= 10 transactions = full data quality
        "lead_time_horizon_days": 30,             # Lead times approaching 30 days lose confidence
        "min_lead_time_variability": 0.1,
        "data_quality_weight": 0.6,
        "lead_time_weight": 0.4,
        "floor": 0.45,
        "cap": 0.95,
    },
}


# ===== DATA FIELD DEFINITIONS =====

DATA_FIELD_DEFINITIONS = {
    "parts": {
        "file_description": "Inventory part catalogue (one record per part)",
        "column_map": {
            "id": "part_id",
            "name": "part_name",
            "quantity": "quantity",
            "reorderPoint": "reorder_point",
            "maxStock": "max_stock",
        },
        "required": ["part_id", "part_name", "quantity", "reorder_point", "max_stock"],
        "numeric": ["quantity", "reorder_point", "max_stock"],
    },

    "transactions": {
        "file_description": "Supply/demand movement history (one record per movement)",
        "column_map": {
            "partName": "part_name",
            "type": "type",
            "quantity": "quantity",
            "date": "date",
        },
        "required": ["part_name", "type", "quantity", "date"],
        "numeric": ["quantity"],
    },
}


# ===== HELPER FUNCTIONS =====

def _read_int_override(env_var, default):
    raw_value = os.environ.get(env_var)
    if raw_value is None or str(raw_value).strip() == "":
        return default
    try:
        return int(str(raw_value).strip())
    except ValueError:
        return default


def get_replenishment_defaults():
    """
    Get the planner defaults.

    Returns:
        dict with lookback_days, vendor_lead_time_days, safety_days
    """
    return dict(REPLENISHMENT_RULES["defaults"])


def get_forecast_planner_options():
    """
    Get the forecast endpoint's planner options, honouring environment overrides.

    Overrides are read at call time so a hosting process can change them
    without reloading this module. Unset or non-integer values fall back to
    the rule values.

    Returns:
        dict with lookback_days, safety_days, default_vendor_lead_time_days
    """
    options = FORECAST_ESTIMATE_RULES["planner_options"]
    env_vars = FORECAST_ESTIMATE_RULES["environment_overrides"]

    return {
        key: _read_int_override(env_vars[key], value)
        for key, value in options.items()
    }


def clamp_non_negative_days(value, minimum=0):
    """Clamp a day count to the configured minimum."""
    return max(minimum, value)


def get_part_column_map():
    return dict(DATA_FIELD_DEFINITIONS["parts"]["column_map"])


def get_transaction_column_map():
    return dict(DATA_FIELD_DEFINITIONS["transactions"]["column_map"])


def get_required_columns(dataset):
    return list(DATA_FIELD_DEFINITIONS[dataset]["required"])


def get_file_description(dataset):
    return DATA_FIELD_DEFINITIONS[dataset]["file_description"]
