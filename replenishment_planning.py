"""
Replenishment Planning Module
=============================
Converts historical supply/demand transactions into a ranked list of
purchase recommendations per inventory part.

Key Features:
- Trailing lookback window (default 90 days, inclusive on both ends)
- Per-part demand and supply aggregation, joined to parts by part name
- Daily rates rounded half-up BEFORE netting supply against demand
- Days until the reorder point is crossed, and the date an order must be
  placed to land before it (vendor lead time aware)
- Order quantity sized for lead time + safety days, capped at max stock
- Only actionable items returned, most urgent first

The engine is a pure function of its inputs and the reference date: it keeps
no state between calls and never mutates the frames it is given.
"""

import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from business_rules import (
    DATA_FIELD_DEFINITIONS,
    REPLENISHMENT_RULES,
    clamp_non_negative_days,
    get_part_column_map,
    get_replenishment_defaults,
    get_required_columns,
    get_transaction_column_map,
)

# ===== CONSTANTS =====

DEFAULT_LOOKBACK_DAYS = REPLENISHMENT_RULES["defaults"]["lookback_days"]
DEFAULT_VENDOR_LEAD_TIME_DAYS = REPLENISHMENT_RULES["defaults"]["vendor_lead_time_days"]
DEFAULT_SAFETY_DAYS = REPLENISHMENT_RULES["defaults"]["safety_days"]

DEMAND_TYPE = REPLENISHMENT_RULES["transaction_types"]["demand"]

PLAN_COLUMNS = [
    'part_id',
    'part_name',
    'current_quantity',
    'reorder_point',
    'max_stock',
    'average_daily_demand',
    'average_daily_supply',
    'net_daily_consumption',
    'days_until_reorder_threshold',
    'needed_by_date',
    'recommended_order_qty',
]

# Wire shape used by the inventory API layer
RECORD_KEYS = {
    'part_id': 'partId',
    'part_name': 'partName',
    'current_quantity': 'currentQuantity',
    'reorder_point': 'reorderPoint',
    'max_stock': 'maxStock',
    'average_daily_demand': 'averageDailyDemand',
    'average_daily_supply': 'averageDailySupply',
    'net_daily_consumption': 'netDailyConsumption',
    'days_until_reorder_threshold': 'daysUntilReorderThreshold',
    'needed_by_date': 'neededByDate',
    'recommended_order_qty': 'recommendedOrderQty',
}

OPTION_ALIASES = {
    'lookback_days': ('lookback_days', 'lookbackDays'),
    'vendor_lead_time_days': ('vendor_lead_time_days', 'vendorLeadTimeDays'),
    'safety_days': ('safety_days', 'safetyDays'),
}


class InvalidPlanningOptionsError(ValueError):
    """Raised when planner options cannot produce a meaningful plan."""


class MissingRecordFieldsError(ValueError):
    """Raised when part or transaction records lack a required field."""


@dataclass(frozen=True)
class ReplenishmentRecommendation:
    """One actionable purchase recommendation for a part."""
    part_id: str
    part_name: str
    current_quantity: int
    reorder_point: int
    max_stock: int
    average_daily_demand: int
    average_daily_supply: int
    net_daily_consumption: int
    days_until_reorder_threshold: Optional[int]
    needed_by_date: Optional[date]
    recommended_order_qty: int

    def to_record(self) -> Dict:
        """Render the camelCase record returned by the inventory API."""
        record = {}
        for field_name, key in RECORD_KEYS.items():
            value = getattr(self, field_name)
            if field_name == 'needed_by_date' and value is not None:
                value = value.isoformat()
            record[key] = value
        return record


# ===== OPTION HANDLING =====

def _validate_day_option(name, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise InvalidPlanningOptionsError(f"{name} must be a number, got {value!r}")
    if not np.isfinite(value):
        raise InvalidPlanningOptionsError(f"{name} must be finite, got {value!r}")
    return value


def resolve_planning_options(
    lookback_days=None,
    vendor_lead_time_days=None,
    safety_days=None
) -> Dict[str, float]:
    """
    Resolve planner options against defaults and clamp them.

    None means "use the configured default" (90/14/7, see business_rules).
    Lead time and safety days are clamped to zero; a non-positive lookback
    window is rejected because daily rates are computed by dividing by it.

    Raises:
        InvalidPlanningOptionsError: non-numeric option or lookback_days <= 0
    """
    defaults = get_replenishment_defaults()
    clamps = REPLENISHMENT_RULES["clamps"]

    if lookback_days is None:
        lookback_days = defaults["lookback_days"]
    if vendor_lead_time_days is None:
        vendor_lead_time_days = defaults["vendor_lead_time_days"]
    if safety_days is None:
        safety_days = defaults["safety_days"]

    lookback_days = _validate_day_option('lookback_days', lookback_days)
    vendor_lead_time_days = _validate_day_option('vendor_lead_time_days', vendor_lead_time_days)
    safety_days = _validate_day_option('safety_days', safety_days)

    if lookback_days <= clamps["min_lookback_days_exclusive"]:
        raise InvalidPlanningOptionsError(
            f"lookback_days must be positive, got {lookback_days!r}"
        )

    return {
        'lookback_days': lookback_days,
        'vendor_lead_time_days': clamp_non_negative_days(
            vendor_lead_time_days, clamps["min_vendor_lead_time_days"]
        ),
        'safety_days': clamp_non_negative_days(safety_days, clamps["min_safety_days"]),
    }


def normalize_reference_date(today=None) -> pd.Timestamp:
    """Truncate the reference date (default: now) to the start of its day."""
    if today is None:
        today = datetime.now()
    reference = pd.Timestamp(today)
    if reference.tzinfo is not None:
        # Keep the caller's wall-clock day
        reference = reference.tz_localize(None)
    return reference.normalize()


# ===== INPUT NORMALIZATION =====

def records_to_frame(records, column_map: Dict[str, str]) -> pd.DataFrame:
    """Copy records (DataFrame or sequence of dicts) into a snake_case frame."""
    if isinstance(records, pd.DataFrame):
        df = records.copy()
    else:
        df = pd.DataFrame(list(records or []))

    rename = {src: dst for src, dst in column_map.items()
              if src in df.columns and dst not in df.columns}
    return df.rename(columns=rename)


def require_columns(df: pd.DataFrame, dataset: str) -> None:
    """
    Raise MissingRecordFieldsError if a non-empty frame lacks a required
    column, or if any record leaves a required field empty.

    Column names are reported in the store's camelCase where one exists.
    """
    if df.empty:
        return
    missing_cols = [col for col in get_required_columns(dataset)
                    if col not in df.columns or df[col].isna().any()]
    if missing_cols:
        store_names = {dst: src for src, dst in DATA_FIELD_DEFINITIONS[dataset]["column_map"].items()}
        raise MissingRecordFieldsError(
            f"{dataset} records are missing required fields: "
            f"{', '.join(store_names.get(col, col) for col in missing_cols)}"
        )


def to_calendar_days(dates: pd.Series) -> pd.Series:
    """
    Bucket transaction dates by calendar day.

    Timezone-aware stamps are converted to UTC first; time of day is dropped.
    Unparseable values raise (pandas' parse error propagates to the caller).
    """
    if pd.api.types.is_datetime64_any_dtype(dates):
        parsed = dates
    else:
        parsed = pd.to_datetime(dates.astype(str), utc=True, format='mixed')

    if getattr(parsed.dt, 'tz', None) is not None:
        parsed = parsed.dt.tz_convert(None)
    return parsed.dt.normalize()


# ===== CALCULATION HELPERS =====

def round_half_up(value: float) -> int:
    """Round to the nearest whole unit, halves rounding up."""
    return int(np.floor(value + 0.5))


def calculate_average_daily_rate(total_qty: float, lookback_days: float) -> int:
    """
    Average units per day over the lookback window, rounded half-up.

    Args:
        total_qty: Units moved in the window
        lookback_days: Window width in days (must be positive)

    Returns:
        Whole units per day
    """
    if not total_qty:
        return 0
    return round_half_up(total_qty / lookback_days)


def calculate_days_until_reorder_threshold(
    quantity: float,
    reorder_point: float,
    net_daily_consumption: int
) -> int:
    """
    Whole days until stock falls to the reorder point.

    Formula: floor(max(0, quantity - reorder_point) / net_daily_consumption)

    Parts already at or below the reorder point return 0.
    """
    buffer = max(0, quantity - reorder_point)
    if buffer <= 0:
        return 0
    return max(0, int(np.floor(buffer / net_daily_consumption)))


def calculate_needed_by_date(
    today: pd.Timestamp,
    days_until_reorder_threshold: int,
    vendor_lead_time_days: float
) -> date:
    """Date an order must be placed so stock arrives before the threshold."""
    place_order_in_days = max(0, days_until_reorder_threshold - vendor_lead_time_days)
    return (today + timedelta(days=float(place_order_in_days))).date()


def calculate_recommended_order_qty(
    net_daily_consumption: int,
    quantity: float,
    max_stock: float,
    vendor_lead_time_days: float,
    safety_days: float
) -> int:
    """
    Order quantity covering lead time + safety days, capped by free capacity.

    Formula:
    Required = ceil(net_daily_consumption * (lead_time + safety_days))
    Space to Max = max(0, max_stock - quantity)
    Recommended = min(Space to Max, max(0, Required))
    """
    coverage_days = vendor_lead_time_days + safety_days
    required_for_coverage = int(np.ceil(net_daily_consumption * coverage_days))
    space_to_max = max(0, max_stock - quantity)
    return int(min(space_to_max, max(0, required_for_coverage)))


# ===== PIPELINE STEPS =====

def filter_transactions_to_window(
    transactions_df: pd.DataFrame,
    today: pd.Timestamp,
    lookback_days: float
) -> pd.DataFrame:
    """
    Keep transactions whose calendar day is in [today - lookback_days, today].

    Returns a copy with an added '_day' column holding the bucketed date.
    """
    if transactions_df.empty:
        return transactions_df.assign(_day=pd.Series(dtype='datetime64[ns]'))

    lookback_start = today - timedelta(days=float(lookback_days))
    df = transactions_df.copy()
    df['_day'] = to_calendar_days(df['date'])

    in_window = (df['_day'] >= lookback_start) & (df['_day'] <= today)
    return df[in_window]


def aggregate_part_activity(window_df: pd.DataFrame) -> pd.DataFrame:
    """
    Total demand and supply per part name.

    Anything not typed 'demand' counts as supply. Distinct demand/supply
    days are tracked alongside the totals.

    Returns:
        DataFrame indexed by part_name with demand_qty, supply_qty,
        demand_days, supply_days
    """
    columns = ['demand_qty', 'supply_qty', 'demand_days', 'supply_days']
    if window_df.empty:
        return pd.DataFrame(columns=columns, index=pd.Index([], name='part_name'))

    df = window_df.copy()
    is_demand = df['type'] == DEMAND_TYPE
    df['demand_qty'] = np.where(is_demand, df['quantity'], 0)
    df['supply_qty'] = np.where(is_demand, 0, df['quantity'])

    totals = df.groupby('part_name').agg(
        demand_qty=('demand_qty', 'sum'),
        supply_qty=('supply_qty', 'sum'),
    )
    totals['demand_days'] = df[is_demand].groupby('part_name')['_day'].nunique()
    totals['supply_days'] = df[~is_demand].groupby('part_name')['_day'].nunique()
    totals[['demand_days', 'supply_days']] = totals[['demand_days', 'supply_days']].fillna(0).astype(int)

    return totals[columns]


def build_recommendation_row(
    part,
    activity: Optional[Tuple[float, float]],
    today: pd.Timestamp,
    lookback_days: float,
    vendor_lead_time_days: float,
    safety_days: float
) -> Dict:
    """Evaluate a single part against its aggregated activity."""
    demand_qty, supply_qty = activity if activity is not None else (0, 0)

    avg_daily_demand = calculate_average_daily_rate(demand_qty, lookback_days)
    avg_daily_supply = calculate_average_daily_rate(supply_qty, lookback_days)
    net_daily_consumption = max(0, avg_daily_demand - avg_daily_supply)

    days_until_threshold = None
    needed_by_date = None
    recommended_order_qty = 0

    if net_daily_consumption > 0:
        days_until_threshold = calculate_days_until_reorder_threshold(
            part.quantity, part.reorder_point, net_daily_consumption
        )
        needed_by_date = calculate_needed_by_date(
            today, days_until_threshold, vendor_lead_time_days
        )
        recommended_order_qty = calculate_recommended_order_qty(
            net_daily_consumption, part.quantity, part.max_stock,
            vendor_lead_time_days, safety_days
        )

    return {
        'part_id': part.part_id,
        'part_name': part.part_name,
        'current_quantity': part.quantity,
        'reorder_point': part.reorder_point,
        'max_stock': part.max_stock,
        'average_daily_demand': avg_daily_demand,
        'average_daily_supply': avg_daily_supply,
        'net_daily_consumption': net_daily_consumption,
        'days_until_reorder_threshold': days_until_threshold,
        'needed_by_date': needed_by_date,
        'recommended_order_qty': recommended_order_qty,
    }


def sort_by_urgency(plan_df: pd.DataFrame) -> pd.DataFrame:
    """
    Order recommendations by urgency.

    Earliest needed_by_date first; rows without a date go after every dated
    row and are ordered among themselves by (current_quantity - reorder_point)
    ascending. Ties keep their input order.
    """
    if plan_df.empty:
        return plan_df

    df = plan_df.copy()
    has_date = df['needed_by_date'].notna()
    df['_missing_date'] = ~has_date
    df['_date_key'] = pd.to_datetime(df['needed_by_date'])
    df['_buffer_key'] = np.where(has_date, 0, df['current_quantity'] - df['reorder_point'])
    df['_input_order'] = np.arange(len(df))

    df = df.sort_values(
        by=['_missing_date', '_date_key', '_buffer_key', '_input_order'],
        ascending=True,
        na_position='last'
    )
    return df.drop(columns=['_missing_date', '_date_key', '_buffer_key', '_input_order'])


def _empty_plan() -> pd.DataFrame:
    return pd.DataFrame(columns=PLAN_COLUMNS)


def generate_replenishment_plan(
    parts,
    transactions,
    lookback_days=None,
    vendor_lead_time_days=None,
    safety_days=None,
    today=None
) -> Tuple[List[str], pd.DataFrame]:
    """
    Generate ranked reorder recommendations for every depleting part.

    This is the main entry point for replenishment planning.

    Args:
        parts: Parts DataFrame (part_id, part_name, quantity, reorder_point,
            max_stock) or a sequence of part records (camelCase keys accepted)
        transactions: Transactions DataFrame (part_name, type, quantity, date)
            or a sequence of transaction records
        lookback_days: Trailing window in days (default 90, must be positive)
        vendor_lead_time_days: Order-to-receipt days (default 14, clamped >= 0)
        safety_days: Extra coverage days (default 7, clamped >= 0)
        today: Reference date; defaults to the current date

    Returns:
        tuple: (logs, plan_df)
        - logs: List of processing messages
        - plan_df: Actionable recommendations sorted by urgency

    Raises:
        InvalidPlanningOptionsError: lookback_days <= 0 or a non-numeric option
        MissingRecordFieldsError: non-empty parts/transactions lack a required field
    """
    options = resolve_planning_options(lookback_days, vendor_lead_time_days, safety_days)
    lookback_days = options['lookback_days']
    vendor_lead_time_days = options['vendor_lead_time_days']
    safety_days = options['safety_days']

    logs = []
    start_time = time.time()
    logs.append("--- Replenishment Planning Engine ---")

    today = normalize_reference_date(today)
    lookback_start = today - timedelta(days=float(lookback_days))
    logs.append(
        f"INFO: Lookback window {lookback_start.date()} to {today.date()} "
        f"({lookback_days} days), lead time {vendor_lead_time_days} days, "
        f"safety {safety_days} days"
    )

    parts_df = records_to_frame(parts, get_part_column_map())
    transactions_df = records_to_frame(transactions, get_transaction_column_map())
    require_columns(parts_df, "parts")
    require_columns(transactions_df, "transactions")

    if parts_df.empty:
        logs.append("WARNING: No parts provided - nothing to plan")
        return logs, _empty_plan()

    if transactions_df.empty:
        logs.append("WARNING: No transactions provided - no consumption can be estimated")

    # ===== STEP 1: Filter to the lookback window =====
    window_df = filter_transactions_to_window(transactions_df, today, lookback_days)
    logs.append(f"INFO: {len(window_df)} of {len(transactions_df)} transactions fall inside the window")

    # ===== STEP 2: Aggregate demand and supply by part name =====
    activity_df = aggregate_part_activity(window_df)
    logs.append(f"INFO: Aggregated activity for {len(activity_df)} part names")
    if not activity_df.empty:
        logs.append(
            f"INFO: Demand seen on up to {activity_df['demand_days'].max()} distinct days, "
            f"supply on up to {activity_df['supply_days'].max()} distinct days"
        )

    # Lookup: part_name -> (demand_qty, supply_qty)
    activity_lookup = dict(zip(
        activity_df.index,
        zip(activity_df['demand_qty'], activity_df['supply_qty'])
    ))

    # ===== STEP 3: Evaluate each part in input order =====
    rows = [
        build_recommendation_row(
            part,
            activity_lookup.get(part.part_name),
            today,
            lookback_days,
            vendor_lead_time_days,
            safety_days
        )
        for part in parts_df.itertuples(index=False)
    ]
    plan_df = pd.DataFrame(rows, columns=PLAN_COLUMNS)
    logs.append(f"INFO: Evaluated {len(plan_df)} parts")

    # ===== STEP 4: Keep actionable items only =====
    plan_df = plan_df[
        (plan_df['net_daily_consumption'] > 0) & (plan_df['recommended_order_qty'] > 0)
    ].copy()
    plan_df['days_until_reorder_threshold'] = plan_df['days_until_reorder_threshold'].astype('Int64')

    # ===== STEP 5: Rank by urgency =====
    plan_df = sort_by_urgency(plan_df).reset_index(drop=True)

    logs.append(f"INFO: {len(plan_df)} parts need replenishment")
    if not plan_df.empty:
        logs.append(f"INFO: Total recommended order: {plan_df['recommended_order_qty'].sum():,.0f} units")
        logs.append(f"INFO: Earliest order date: {plan_df['needed_by_date'].iloc[0]}")

    end_time = time.time()
    logs.append(f"INFO: Replenishment planning finished in {end_time - start_time:.2f} seconds.")

    return logs, plan_df


def _resolve_option(options: Dict, name: str):
    for key in OPTION_ALIASES[name]:
        if key in options and options[key] is not None:
            return options[key]
    return None


def plan(parts, transactions, options=None, today=None) -> List[ReplenishmentRecommendation]:
    """
    Value-typed entry point: ranked ReplenishmentRecommendation objects.

    options may use either camelCase (lookbackDays, vendorLeadTimeDays,
    safetyDays) or snake_case keys; missing keys use the defaults.
    """
    options = options or {}
    _, plan_df = generate_replenishment_plan(
        parts,
        transactions,
        lookback_days=_resolve_option(options, 'lookback_days'),
        vendor_lead_time_days=_resolve_option(options, 'vendor_lead_time_days'),
        safety_days=_resolve_option(options, 'safety_days'),
        today=today
    )
    return plan_to_recommendations(plan_df)


# ===== PLAN CONVERSION & REPORTING HELPERS =====

def _optional_int(value) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    return int(value)


def _optional_date(value) -> Optional[date]:
    if value is None or pd.isna(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def plan_to_recommendations(plan_df: pd.DataFrame) -> List[ReplenishmentRecommendation]:
    """Convert plan rows into ReplenishmentRecommendation values, keeping order."""
    recommendations = []
    for row in plan_df.itertuples(index=False):
        recommendations.append(ReplenishmentRecommendation(
            part_id=row.part_id,
            part_name=row.part_name,
            current_quantity=int(row.current_quantity),
            reorder_point=int(row.reorder_point),
            max_stock=int(row.max_stock),
            average_daily_demand=int(row.average_daily_demand),
            average_daily_supply=int(row.average_daily_supply),
            net_daily_consumption=int(row.net_daily_consumption),
            days_until_reorder_threshold=_optional_int(row.days_until_reorder_threshold),
            needed_by_date=_optional_date(row.needed_by_date),
            recommended_order_qty=int(row.recommended_order_qty),
        ))
    return recommendations


def plan_to_records(plan_df: pd.DataFrame) -> List[Dict]:
    """camelCase records for the inventory API response."""
    return [rec.to_record() for rec in plan_to_recommendations(plan_df)]


def find_recommendation(plan_df: pd.DataFrame, part_name: str) -> Optional[ReplenishmentRecommendation]:
    """First recommendation for part_name, or None if the part is not actionable."""
    if plan_df.empty:
        return None
    matches = plan_df[plan_df['part_name'] == part_name]
    if matches.empty:
        return None
    return plan_to_recommendations(matches.head(1))[0]


def get_low_stock_parts(parts) -> pd.DataFrame:
    """
    Parts currently below their reorder point (dashboard stock alerts).

    Returns:
        DataFrame of low-stock parts with a 'buffer' column
        (quantity - reorder_point), most negative first
    """
    parts_df = records_to_frame(parts, get_part_column_map())
    if parts_df.empty:
        return pd.DataFrame()

    low_stock = parts_df[parts_df['quantity'] < parts_df['reorder_point']].copy()
    low_stock['buffer'] = low_stock['quantity'] - low_stock['reorder_point']
    return low_stock.sort_values('buffer', kind='mergesort').reset_index(drop=True)


def get_backordered_parts(parts) -> pd.DataFrame:
    """Parts with outstanding backorders; empty when the catalogue has none."""
    parts_df = records_to_frame(parts, get_part_column_map())
    if parts_df.empty or 'backorders' not in parts_df.columns:
        return pd.DataFrame()

    backorders = pd.to_numeric(parts_df['backorders'], errors='coerce').fillna(0)
    return parts_df[backorders > 0].reset_index(drop=True)


def get_replenishment_summary(plan_df: pd.DataFrame, today=None) -> pd.DataFrame:
    """
    Summarize a replenishment plan in one row.

    Args:
        plan_df: Plan DataFrame from generate_replenishment_plan
        today: Reference date for the "order today" count

    Returns:
        DataFrame with Items, Total Units, Earliest Needed By, Order Today
    """
    if plan_df.empty:
        return pd.DataFrame()

    today = normalize_reference_date(today).date()
    needed_dates = plan_df['needed_by_date'].dropna()

    summary = pd.DataFrame([{
        'Items': len(plan_df),
        'Total Units': int(plan_df['recommended_order_qty'].sum()),
        'Earliest Needed By': needed_dates.min() if not needed_dates.empty else None,
        'Order Today': int(sum(d <= today for d in needed_dates)),
    }])
    return summary
