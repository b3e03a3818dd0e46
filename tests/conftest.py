"""
Pytest configuration and shared fixtures for all tests
Centralized mock data and utilities
"""

import pytest
import pandas as pd
import io
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# All planning tests run against a pinned reference date
PLANNING_TODAY = pd.Timestamp('2024-07-31')

# ===== SHARED MOCK DATA FIXTURES =====

@pytest.fixture
def planning_today():
    """Fixed 'today' so window and needed-by dates are deterministic"""
    return PLANNING_TODAY


@pytest.fixture
def mock_parts_csv():
    """
    Creates mock parts CSV with:
    - camelCase column names as exported from the document store
    - A quantity with a thousands separator
    - Two parts sharing a name (transactions join by name)
    """
    csv_data = """id,name,quantity,reorderPoint,maxStock,type
P001-R,Engine Block Casting,50,20,100,raw
P002-R,Piston Forgings,"1,200",50,3000,raw
P003-F, Brake  Pad Kit ,80,40,200,finished
P004-F,Brake Pad Kit,10,40,200,finished
"""
    return "parts.csv", io.StringIO(csv_data)


@pytest.fixture
def mock_transactions_csv():
    """
    Creates mock transactions CSV with various scenarios:
    - ISO date and ISO timestamp formats
    - Upper-case transaction type (normalized)
    - Invalid date (rejected)
    - Unknown transaction type (rejected)
    - Zero quantity (rejected)
    """
    csv_data = (
        "id,partName,type,quantity,date\n"
        "T001,Engine Block Casting,supply,20,2024-07-15\n"
        "T002,Engine Block Casting,DEMAND,10,2024-07-14T09:30:00Z\n"
        "T003,Piston Forgings,demand,30,2024-07-13\n"
        "T004,Piston Forgings,demand,5,INVALID-DATE\n"
        "T005,Brake Pad Kit,return,5,2024-07-12\n"
        "T006,Brake Pad Kit,demand,0,2024-07-11\n"
    )
    return "transactions.csv", io.StringIO(csv_data)

# ===== MOCK CSV READER FIXTURE =====

@pytest.fixture(autouse=True)
def mock_read_csv(monkeypatch, mock_parts_csv, mock_transactions_csv):
    """
    Auto-used fixture that intercepts all pd.read_csv calls and returns
    appropriate mock data. This allows tests to run without real CSV files.

    The fixture maps filenames to mock data streams.
    """
    mocks = {
        "parts.csv": mock_parts_csv[1],
        "transactions.csv": mock_transactions_csv[1],
    }

    original_read_csv = pd.read_csv

    def new_read_csv(filepath_or_buffer, *args, **kwargs):
        if isinstance(filepath_or_buffer, str):
            filename = os.path.basename(filepath_or_buffer)
            if filename in mocks:
                mocks[filename].seek(0)
                return original_read_csv(mocks[filename], *args, **kwargs)

        return original_read_csv(filepath_or_buffer, *args, **kwargs)

    monkeypatch.setattr(pd, "read_csv", new_read_csv)

# ===== HELPER FIXTURES =====

@pytest.fixture
def make_part():
    """Factory for part records in the store's camelCase shape"""
    def _make(part_id, name, quantity, reorder_point, max_stock):
        return {
            'id': part_id,
            'name': name,
            'quantity': quantity,
            'reorderPoint': reorder_point,
            'maxStock': max_stock,
        }
    return _make


@pytest.fixture
def make_transactions(planning_today):
    """
    Factory for transaction records spread across the lookback window.

    Splits total_qty evenly over `count` transactions, one every 10 days
    back from the pinned 'today'.
    """
    def _make(part_name, tx_type, total_qty, count=9):
        per_tx = total_qty // count
        records = []
        for i in range(count):
            qty = per_tx if i < count - 1 else total_qty - per_tx * (count - 1)
            day = planning_today - pd.Timedelta(days=10 * i)
            records.append({
                'partName': part_name,
                'type': tx_type,
                'quantity': qty,
                'date': day.strftime('%Y-%m-%d'),
            })
        return records
    return _make

# ===== UTILITY FUNCTIONS FOR TESTS =====

def assert_log_contains(logs, expected_message):
    """
    Helper to assert that a log message contains expected text

    Args:
        logs: List of log messages
        expected_message: Text expected to be in one of the logs
    """
    log_text = " ".join(logs)
    assert expected_message in log_text, f"Expected '{expected_message}' not found in logs: {log_text}"

def assert_columns_exist(df, columns):
    """
    Helper to assert that DataFrame contains required columns

    Args:
        df: Pandas DataFrame
        columns: List of column names that should exist
    """
    missing = set(columns) - set(df.columns)
    assert not missing, f"Missing required columns: {missing}"
