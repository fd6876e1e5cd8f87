"""
Row mapping and SQL fragments shared by the SQLite and PostgreSQL adapters.

Both catalog repositories and the pgvector index read the same `companies`
table, so the column list, row -> Company conversion and filter clauses live
here to keep them identical across backends.
"""

from typing import Any, List, Mapping, Tuple

from ticker_scout.domain.entities import Company
from ticker_scout.domain.value_objects import SearchFilters

COMPANY_COLUMNS = (
    "id",
    "symbol",
    "short_name",
    "long_name",
    "sector",
    "industry",
    "exchange",
    "current_price",
    "market_cap",
    "ebitda",
    "revenue_growth",
    "city",
    "state",
    "country",
    "full_time_employees",
    "long_business_summary",
    "weight",
    "has_embedding",
    "embedding",
)

# Fields searched by the text-match fallback
TEXT_MATCH_COLUMNS = (
    "short_name",
    "long_name",
    "sector",
    "industry",
    "long_business_summary",
)


def select_columns(alias: str = "") -> str:
    """Comma-separated column list, optionally qualified with a table alias."""
    prefix = f"{alias}." if alias else ""
    return ", ".join(f"{prefix}{column}" for column in COMPANY_COLUMNS)


def row_to_company(row: Mapping[str, Any]) -> Company:
    """Convert a database row (sqlite3.Row or dict) to a Company entity."""
    embedding = row["embedding"]
    return Company(
        id=int(row["id"]),
        symbol=row["symbol"],
        short_name=row["short_name"],
        long_name=row["long_name"],
        sector=row["sector"],
        industry=row["industry"],
        exchange=row["exchange"],
        current_price=row["current_price"],
        market_cap=row["market_cap"],
        ebitda=row["ebitda"],
        revenue_growth=row["revenue_growth"],
        city=row["city"],
        state=row["state"],
        country=row["country"],
        full_time_employees=row["full_time_employees"],
        long_business_summary=row["long_business_summary"],
        weight=row["weight"],
        has_embedding=bool(row["has_embedding"]),
        embedding=bytes(embedding) if embedding is not None else None,
    )


def company_to_row(company: Company) -> dict:
    """Convert a Company entity to a database row dict."""
    return {column: getattr(company, column) for column in COMPANY_COLUMNS}


def build_filter_clause(
    filters: SearchFilters, placeholder: str, alias: str = ""
) -> Tuple[List[str], List[Any]]:
    """
    Translate SearchFilters into SQL conditions and parameters.

    Args:
        filters: Filters to translate
        placeholder: Parameter marker of the driver ('?' or '%s')
        alias: Optional table alias for the companies table

    Returns:
        (conditions, params): conditions are meant to be AND-ed together
    """
    prefix = f"{alias}." if alias else ""
    conditions: List[str] = []
    params: List[Any] = []

    if filters.sector is not None:
        conditions.append(f"{prefix}sector = {placeholder}")
        params.append(filters.sector)

    if filters.min_market_cap is not None:
        conditions.append(f"{prefix}market_cap >= {placeholder}")
        params.append(filters.min_market_cap)

    if filters.max_market_cap is not None:
        conditions.append(f"{prefix}market_cap <= {placeholder}")
        params.append(filters.max_market_cap)

    return conditions, params


def where_sql(conditions: List[str]) -> str:
    """Join conditions into a WHERE clause ('' when there are none)."""
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(conditions)
