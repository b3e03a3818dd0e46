import io  # Required for Excel export
from datetime import date

import pandas as pd

# --- Constants ---
PLAN_SHEET_NAME = 'Replenishment Plan'
LOW_STOCK_SHEET_NAME = 'Low Stock'

PLAN_EXPORT_HEADERS = {
    'part_id': 'Part ID',
    'part_name': 'Part Name',
    'current_quantity': 'Current Qty',
    'reorder_point': 'Reorder Point',
    'max_stock': 'Max Stock',
    'average_daily_demand': 'Avg Daily Demand',
    'average_daily_supply': 'Avg Daily Supply',
    'net_daily_consumption': 'Net Daily Consumption',
    'days_until_reorder_threshold': 'Days Until Reorder Point',
    'needed_by_date': 'Order By',
    'recommended_order_qty': 'Recommended Order Qty',
}


def _is_date_column(series: pd.Series) -> bool:
    if pd.api.types.is_datetime64_any_dtype(series):
        return True
    non_null = series.dropna()
    return not non_null.empty and non_null.map(lambda v: isinstance(v, date)).all()


# --- Data Export Function ---

def get_filtered_data_as_excel(dfs_to_export_dict):
    """
    Processes a dictionary of dataframes
    and returns an Excel file as a bytes object for download.
    The dictionary format is { "sheet_name": (dataframe, include_index_bool) }

    Date and datetime columns are written as YYYY-MM-DD text; the input
    frames are only copied when such a column needs converting.
    """
    output = io.BytesIO()

    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        for sheet_name, (df, include_index) in dfs_to_export_dict.items():

            # Ensure dataframe is not just a placeholder
            if not isinstance(df, pd.DataFrame) or df.empty:
                continue

            df_to_export = df
            date_columns = [col for col in df.columns if _is_date_column(df[col])]

            if date_columns:
                df_to_export = df.copy()
                for col in date_columns:
                    values = pd.to_datetime(df_to_export[col])
                    if values.dt.tz is not None:
                        values = values.dt.tz_localize(None)
                    df_to_export[col] = values.dt.strftime('%Y-%m-%d')

            df_to_export.to_excel(writer, sheet_name=sheet_name, index=include_index)

            # Auto-adjust column widths
            worksheet = writer.sheets[sheet_name]
            offset = 1 if include_index else 0
            for idx, col in enumerate(df_to_export.columns):
                series = df_to_export[col]
                max_len = max(
                    series.map(lambda value: len(str(value))).max(),
                    len(str(series.name))
                ) + 2
                worksheet.set_column(idx + offset, idx + offset, max_len)

        if not writer.sheets:
            # xlsxwriter needs at least one sheet to produce a valid workbook
            pd.DataFrame().to_excel(writer, sheet_name='Empty', index=False)

    return output.getvalue()


def export_replenishment_plan(plan_df: pd.DataFrame, low_stock_df: pd.DataFrame = None) -> bytes:
    """
    Export a replenishment plan (and optional low-stock list) to an Excel workbook.

    Plan columns are renamed to readable headers.
    """
    plan_export = plan_df.rename(columns=PLAN_EXPORT_HEADERS)
    sheets = {PLAN_SHEET_NAME: (plan_export, False)}
    if low_stock_df is not None:
        sheets[LOW_STOCK_SHEET_NAME] = (low_stock_df, False)
    return get_filtered_data_as_excel(sheets)
