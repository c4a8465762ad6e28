"""Event type constants published after a ledger transaction commits."""


class EventTypes:
    """Event type string constants"""

    # transaction engine
    CASE_OPENED = "case_opened"
    ITEM_SOLD = "item_sold"
    INVENTORY_SOLD = "inventory_sold"

    # catalog anomalies
    DROP_TABLE_REJECTED = "drop_table_rejected"
