"""Error taxonomy for ledger operations.

BusinessError subclasses are client-visible rule violations and never leave
partial state behind. StoreError covers transport/I/O failures and is fatal
to the request. ConflictError is a transient StoreError that the ledger
retries on its own; callers only ever see it wrapped after retries run out.
"""


class LootcaseError(Exception):
    """Base for every error raised by the engine."""


# === Business rule violations ===


class BusinessError(LootcaseError):
    code = "business_error"


class NotFound(BusinessError):
    code = "not_found"


class CaseNotFound(NotFound):
    code = "case_not_found"

    def __init__(self, case_id: int):
        super().__init__(f"Case not found: {case_id}")
        self.case_id = case_id


class ItemNotFound(NotFound):
    """Inventory record absent, owned by someone else, or already sold."""

    code = "item_not_found"

    def __init__(self, record_id: int):
        super().__init__(f"Item not found: {record_id}")
        self.record_id = record_id


class InsufficientFunds(BusinessError):
    code = "insufficient_funds"

    def __init__(self, balance: int, price: int):
        super().__init__(f"Insufficient funds: balance {balance} < price {price}")
        self.balance = balance
        self.price = price


class InvalidDropTable(BusinessError):
    """Catalog misconfiguration: empty contents, bad or all-zero weights."""

    code = "invalid_drop_table"

    def __init__(self, reason: str, case_id: int | None = None):
        prefix = f"Case {case_id}: " if case_id is not None else ""
        super().__init__(f"{prefix}invalid drop table ({reason})")
        self.reason = reason
        self.case_id = case_id


class CatalogError(BusinessError):
    """Rejected catalog write (negative price, unknown rarity, ...)."""

    code = "catalog_error"


# === Store failures ===


class StoreError(LootcaseError):
    code = "store_error"


class ConflictError(StoreError):
    """Row changed under us since it was read. Retried by the ledger."""

    code = "conflict"
