from prometheus_client import Counter, Histogram

DB_STATEMENT_TOTAL = Counter(
    "tablecrud_db_statement_total",
    "Generated statements executed, by table, operation and outcome",
    ["table", "op_type", "status"],
)

DB_STATEMENT_LATENCY_SECONDS = Histogram(
    "tablecrud_db_statement_latency_seconds",
    "Wall time of one table operation, connection and commit included",
    ["table", "op_type"],
)
