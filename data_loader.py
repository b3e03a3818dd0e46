import pandas as pd
import time
from file_loader import safe_read_csv
from business_rules import DATA_FIELD_DEFINITIONS, REPLENISHMENT_RULES, get_file_description
from replenishment_planning import records_to_frame

# === Helper Functions ===

VALID_TRANSACTION_TYPES = set(REPLENISHMENT_RULES["transaction_types"].values())


def clean_string_column(series: pd.Series) -> pd.Series:
    """
    Clean string columns by stripping whitespace and normalizing spaces.

    Args:
        series: Pandas Series with string data

    Returns:
        Cleaned Series with normalized whitespace
    """
    return series.astype(str).str.strip().str.replace(r'\s+', ' ', regex=True)


def safe_numeric_column(series: pd.Series, remove_commas: bool = False) -> pd.Series:
    """
    Convert column to numeric with optional comma removal.

    Args:
        series: Pandas Series to convert
        remove_commas: If True, remove commas before conversion

    Returns:
        Numeric Series with NaN filled as 0
    """
    if remove_commas:
        series = series.astype(str).str.replace(',', '', regex=False)
    return pd.to_numeric(series, errors='coerce').fillna(0)


def check_columns(df, required_cols, filename, logs):
    """Helper function to check for missing columns."""
    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        logs.append(f"ERROR: '{filename}' is missing required columns: {', '.join(missing_cols)}")
        return False
    return True


def read_records(source, dataset, file_key, uploaded_files=None):
    """
    Turn any supported source into a snake_case DataFrame copy.

    Supported sources: a DataFrame, a sequence of record dicts (as returned
    by the document store), or a CSV path / uploaded buffer key.
    """
    if isinstance(source, str) or (uploaded_files and file_key in uploaded_files):
        source = safe_read_csv(file_key, source, uploaded_files=uploaded_files, low_memory=False)
    return records_to_frame(source, DATA_FIELD_DEFINITIONS[dataset]["column_map"])


# === Record Loaders ===

def load_parts_data(source, file_key='parts', uploaded_files=None):
    """
    Loads the part catalogue and normalizes it to the planning schema.

    Args:
        source: list of part records, DataFrame, or CSV file path
        file_key: key for an uploaded buffer (default 'parts')
        uploaded_files: optional dict of uploaded buffers

    Returns: logs (list), dataframe, error_dataframe
    """
    logs = []
    start_time = time.time()
    logs.append("--- Parts Catalogue Loader ---")

    try:
        df = read_records(source, "parts", file_key, uploaded_files)
        logs.append(f"INFO: Loaded {len(df)} part records ({get_file_description('parts')})")
    except Exception as e:
        logs.append(f"ERROR: Failed to read parts data: {e}")
        return logs, pd.DataFrame(), pd.DataFrame()

    if df.empty:
        logs.append("WARNING: Parts data is empty.")
        return logs, pd.DataFrame(), pd.DataFrame()

    if not check_columns(df, DATA_FIELD_DEFINITIONS["parts"]["required"], "parts", logs):
        return logs, pd.DataFrame(), pd.DataFrame()

    df['part_id'] = clean_string_column(df['part_id'])
    df['part_name'] = clean_string_column(df['part_name'])
    for col in DATA_FIELD_DEFINITIONS["parts"]["numeric"]:
        df[col] = safe_numeric_column(df[col], remove_commas=True).astype('int64')

    # Duplicate names share aggregated demand; flag them, keep them
    duplicate_names = df.loc[df['part_name'].duplicated(keep=False), 'part_name'].unique()
    if len(duplicate_names) > 0:
        logs.append(
            f"WARNING: {len(duplicate_names)} part names are shared by multiple parts "
            f"(transactions join by name): {', '.join(duplicate_names[:5])}"
        )

    end_time = time.time()
    logs.append(f"INFO: Parts Catalogue Loader finished in {end_time - start_time:.2f} seconds.")

    return logs, df, pd.DataFrame()


def load_transactions_data(source, file_key='transactions', uploaded_files=None):
    """
    Loads supply/demand transactions and normalizes them to the planning schema.

    Rows with an unparseable date, an unknown type, or a non-positive quantity
    are moved to the error dataframe with an 'error_reason'.

    Args:
        source: list of transaction records, DataFrame, or CSV file path
        file_key: key for an uploaded buffer (default 'transactions')
        uploaded_files: optional dict of uploaded buffers

    Returns: logs (list), dataframe, error_dataframe
    """
    logs = []
    start_time = time.time()
    logs.append("--- Transactions Loader ---")

    try:
        df = read_records(source, "transactions", file_key, uploaded_files)
        logs.append(f"INFO: Loaded {len(df)} transaction records ({get_file_description('transactions')})")
    except Exception as e:
        logs.append(f"ERROR: Failed to read transactions data: {e}")
        return logs, pd.DataFrame(), pd.DataFrame()

    if df.empty:
        logs.append("WARNING: Transactions data is empty.")
        return logs, pd.DataFrame(), pd.DataFrame()

    if not check_columns(df, DATA_FIELD_DEFINITIONS["transactions"]["required"], "transactions", logs):
        return logs, pd.DataFrame(), pd.DataFrame()

    df['part_name'] = clean_string_column(df['part_name'])
    df['type'] = df['type'].astype(str).str.strip().str.lower()
    df['quantity'] = safe_numeric_column(df['quantity'], remove_commas=True)

    parsed_dates = pd.to_datetime(df['date'], errors='coerce', utc=True, format='mixed')
    df['date'] = parsed_dates.dt.tz_convert(None).dt.normalize()

    df['error_reason'] = None
    df.loc[df['quantity'] <= 0, 'error_reason'] = 'non-positive quantity'
    df.loc[~df['type'].isin(VALID_TRANSACTION_TYPES), 'error_reason'] = 'unknown transaction type'
    df.loc[df['date'].isna(), 'error_reason'] = 'unparseable date'

    error_mask = df['error_reason'].notna()
    error_df = df[error_mask].copy()
    df = df[~error_mask].drop(columns=['error_reason']).reset_index(drop=True)

    if not error_df.empty:
        logs.append(f"WARNING: {len(error_df)} transactions rejected:")
        for reason, count in error_df['error_reason'].value_counts().items():
            logs.append(f"WARNING:   {reason}: {count}")

    logs.append(f"INFO: {len(df)} valid transactions "
                f"({(df['type'] == 'demand').sum()} demand, {(df['type'] == 'supply').sum()} supply).")

    end_time = time.time()
    logs.append(f"INFO: Transactions Loader finished in {end_time - start_time:.2f} seconds.")

    return logs, df, error_df.reset_index(drop=True)
