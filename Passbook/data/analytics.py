"""Spending summaries built with pandas.

The functions take the lists of dicts returned by the server and return
DataFrames, or plain dicts for single figures. Expenses of both variants are
accepted: the family backend dates them with ``date``, the passbook with
``created_at``.
"""
import logging
from typing import Any, Dict, List

import pandas as pd

DATE_COLUMNS = ('date', 'created_at')
UNKNOWN: str = 'Unknown'


def _conform_date_column(df: pd.DataFrame) -> pd.DataFrame:
    source = next((c for c in DATE_COLUMNS if c in df.columns), None)
    if source is None:
        df['date'] = pd.NaT
        return df

    dates = pd.to_datetime(df[source], errors='coerce', utc=True, format='ISO8601')
    df['date'] = dates.dt.tz_convert(None)
    return df


def _conform_amount_column(df: pd.DataFrame) -> pd.DataFrame:
    if 'amount' not in df.columns:
        df['amount'] = 0.0
        return df

    df['amount'] = pd.to_numeric(df['amount'], errors='coerce')
    clean_df = df.dropna(subset=['amount'])
    if len(df) != len(clean_df):
        logging.warning(f'Dropped {len(df) - len(clean_df)} expenses with an invalid amount.')
    return clean_df


def expenses_frame(expenses: List[Dict[str, Any]]) -> pd.DataFrame:
    """Convert server expenses to a DataFrame.

    Args:
        expenses (list[dict]): Expenses as returned by the server.

    Returns:
        pd.DataFrame: One row per expense, with a datetime ``date`` and a float
        ``amount`` column, sorted by date. Rows without a valid amount are dropped.
    """
    if not expenses:
        return pd.DataFrame(columns=['date', 'amount'])

    df = pd.DataFrame.from_records(expenses)
    df = _conform_date_column(df)
    df = _conform_amount_column(df)
    return df.sort_values(by='date', ascending=True, na_position='last').reset_index(drop=True)


def total_spent(expenses: List[Dict[str, Any]]) -> float:
    df = expenses_frame(expenses)
    if df.empty:
        return 0.0
    return float(df['amount'].sum())


def spending_by(expenses: List[Dict[str, Any]], column: str) -> pd.DataFrame:
    """Total spending grouped by a column, largest first.

    Args:
        expenses (list[dict]): Expenses as returned by the server.
        column (str): Column to group by, e.g. ``'category'`` or ``'childName'``.

    Returns:
        pd.DataFrame: Columns ``name``, ``total``, ``count`` and ``percent``.
    """
    columns = ['name', 'total', 'count', 'percent']
    df = expenses_frame(expenses)
    if df.empty:
        return pd.DataFrame(columns=columns)

    if column not in df.columns:
        df[column] = UNKNOWN
    df[column] = df[column].fillna(UNKNOWN).astype(str).replace('', UNKNOWN)

    grouped = df.groupby(column)['amount'].agg(['sum', 'count']).reset_index()
    grouped.columns = ['name', 'total', 'count']

    total = grouped['total'].sum()
    grouped['percent'] = (grouped['total'] / total * 100.0) if total else 0.0

    return grouped.sort_values(by=['total', 'name'], ascending=[False, True]).reset_index(drop=True)[columns]


def monthly_totals(expenses: List[Dict[str, Any]]) -> pd.DataFrame:
    """Total spending per ``YYYY-MM`` month, oldest first.

    Returns:
        pd.DataFrame: Columns ``month`` and ``total``.
    """
    df = expenses_frame(expenses)
    df = df.dropna(subset=['date']).copy()
    if df.empty:
        return pd.DataFrame(columns=['month', 'total'])

    df['month'] = df['date'].dt.strftime('%Y-%m')
    totals = df.groupby('month')['amount'].sum().reset_index()
    totals.columns = ['month', 'total']
    return totals.sort_values(by='month').reset_index(drop=True)


def month_overview(months: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Summarise the loaded months of the passbook.

    Args:
        months (list[dict]): Items of the months list, with ``month`` and ``monthly_saved``.

    Returns:
        dict: ``count``, ``total_saved``, ``average_saved`` and the ``best`` and
        ``worst`` month keys (``None`` when no months are loaded).
    """
    overview = {
        'count': 0,
        'total_saved': 0.0,
        'average_saved': 0.0,
        'best': None,
        'worst': None,
    }
    if not months:
        return overview

    df = pd.DataFrame.from_records(months)
    if 'month' not in df.columns:
        return overview

    saved = df['monthly_saved'] if 'monthly_saved' in df.columns else pd.Series(0.0, index=df.index)
    df['monthly_saved'] = pd.to_numeric(saved, errors='coerce').fillna(0.0)
    df = df.sort_values(by='month').reset_index(drop=True)

    overview['count'] = len(df)
    overview['total_saved'] = float(df['monthly_saved'].sum())
    overview['average_saved'] = float(df['monthly_saved'].mean())
    overview['best'] = df.loc[df['monthly_saved'].idxmax(), 'month']
    overview['worst'] = df.loc[df['monthly_saved'].idxmin(), 'month']
    return overview
