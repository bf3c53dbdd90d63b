"""Row count helpers for count-only audits."""


def count_ratio(record_count: int, replica_count: int) -> float:
    """
    Replica count relative to the record side.

    Returns:
        replica_count / record_count, or 0.0 when the record side is empty
    """
    if record_count > 0:
        return replica_count / record_count
    return 0.0
