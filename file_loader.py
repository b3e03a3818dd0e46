"""
Helper module to read CSV files from either disk or uploaded in-memory buffers.
"""
import pandas as pd
import os


def get_file_source(file_key: str, file_path, uploaded_files=None):
    """
    Returns a file-like object or path for reading a CSV.

    Priority:
    1. If an uploaded buffer exists in uploaded_files[file_key], use that buffer
    2. Otherwise, use the file_path on disk

    Args:
        file_key: key in uploaded_files (e.g., 'parts', 'transactions')
        file_path: fallback file path
        uploaded_files: optional dict of {file_key: file-like buffer}

    Returns:
        tuple: (source, is_uploaded) where source is file-like or path, is_uploaded is bool
    """
    uploaded_files = uploaded_files or {}

    if file_key in uploaded_files:
        buffer = uploaded_files[file_key]
        if hasattr(buffer, 'seek'):
            buffer.seek(0)
        return buffer, True
    elif file_path and os.path.isfile(os.path.abspath(file_path)):
        return file_path, False
    else:
        return None, False


def safe_read_csv(file_key: str, file_path, uploaded_files=None, **kwargs):
    """
    Safely read a CSV from either an uploaded buffer or disk.

    Args:
        file_key: key in uploaded_files
        file_path: fallback file path
        uploaded_files: optional dict of uploaded buffers
        **kwargs: passed to pd.read_csv()

    Returns:
        pd.DataFrame or raises an exception
    """
    try:
        source, is_uploaded = get_file_source(file_key, file_path, uploaded_files)

        if source is None:
            # Let pandas resolve the path itself
            return pd.read_csv(file_path, **kwargs)

        return pd.read_csv(source, **kwargs)
    except FileNotFoundError:
        raise FileNotFoundError(f"File not found: {file_path} (and no uploaded file)")
