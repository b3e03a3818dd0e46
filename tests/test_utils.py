"""
Tests for utils module
Tests Excel export of replenishment plans
"""

import pytest
import pandas as pd
import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils import get_filtered_data_as_excel, export_replenishment_plan
from replenishment_planning import PLAN_COLUMNS, generate_replenishment_plan, get_low_stock_parts

XLSX_MAGIC = b'PK'


class TestExcelExport:
    """Test Excel export functionality"""

    def test_get_filtered_data_as_excel_returns_bytes(self):
        """Test that Excel export returns bytes"""
        df = pd.DataFrame({
            'col1': [1, 2, 3],
            'col2': ['a', 'b', 'c']
        })

        result = get_filtered_data_as_excel({"Test Sheet": (df, False)})
        assert isinstance(result, bytes)
        assert result.startswith(XLSX_MAGIC)

    def test_get_filtered_data_as_excel_empty_dataframe(self):
        """Test Excel export with empty DataFrame"""
        result = get_filtered_data_as_excel({"Empty Sheet": (pd.DataFrame(), False)})
        assert isinstance(result, bytes)
        assert result.startswith(XLSX_MAGIC)

    def test_date_columns_do_not_modify_input(self):
        df = pd.DataFrame({
            'needed_by_date': [date(2024, 7, 31), None],
            'stamp': pd.to_datetime(['2024-07-31 10:00', '2024-08-01 11:00']).tz_localize('UTC'),
        })
        before = df.copy()

        result = get_filtered_data_as_excel({"Dates": (df, True)})

        assert result.startswith(XLSX_MAGIC)
        pd.testing.assert_frame_equal(df, before)


class TestPlanExport:
    """Test the replenishment plan workbook"""

    def test_export_plan_with_low_stock(self, planning_today):
        parts = [
            {'id': 'P1', 'name': 'Widget', 'quantity': 10, 'reorderPoint': 20, 'maxStock': 100},
            {'id': 'P2', 'name': 'Bolt', 'quantity': 100, 'reorderPoint': 20, 'maxStock': 200},
        ]
        transactions = [{'partName': 'Widget', 'type': 'demand', 'quantity': 900, 'date': '2024-07-01'}]
        _, plan_df = generate_replenishment_plan(parts, transactions, today=planning_today)

        result = export_replenishment_plan(plan_df, get_low_stock_parts(parts))
        assert result.startswith(XLSX_MAGIC)

    def test_export_empty_plan(self):
        result = export_replenishment_plan(pd.DataFrame(columns=PLAN_COLUMNS))
        assert result.startswith(XLSX_MAGIC)

    def test_export_undated_rows_and_missing_values(self):
        plan_df = pd.DataFrame({
            'part_id': ['P1', 'P2'],
            'needed_by_date': [date(2024, 8, 2), None],
            'days_until_reorder_threshold': pd.array([16, None], dtype='Int64'),
            'note': ['rush', None],
        })

        result = export_replenishment_plan(plan_df)
        assert result.startswith(XLSX_MAGIC)
