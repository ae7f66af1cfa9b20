"""CSV statement parsing for card transaction imports."""
import csv
from datetime import date, datetime
import html
import io
import logging

from pydantic import BaseModel

from benefit_tracker.exceptions import StatementParseError
from benefit_tracker.models.transaction import ParsedTransaction
from benefit_tracker.services.credit_classifier import card_family

logger = logging.getLogger(__name__)

DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%m/%d/%y")


class StatementConfig(BaseModel):
    """Column layout of one issuer's CSV export."""

    card_family: str
    date_column: str
    description_column: str
    amount_column: str
    extended_details_column: str | None = None
    category_column: str | None = None
    reference_column: str | None = None
    type_column: str | None = None
    decode_html: bool = False

    class Config:
        frozen = True


AMEX_CONFIG = StatementConfig(
    card_family="amex",
    date_column="Date",
    description_column="Description",
    amount_column="Amount",
    extended_details_column="Extended Details",
    category_column="Category",
    reference_column="Reference",
)

CHASE_CONFIG = StatementConfig(
    card_family="chase",
    date_column="Transaction Date",
    description_column="Description",
    amount_column="Amount",
    category_column="Category",
    type_column="Type",
    decode_html=True,
)

STATEMENT_CONFIGS = {
    "amex": AMEX_CONFIG,
    "chase": CHASE_CONFIG,
}


def config_for_card(card_id: str) -> StatementConfig:
    """Pick the CSV layout for a card."""
    config = STATEMENT_CONFIGS.get(card_family(card_id))
    if config is None:
        raise StatementParseError(f"Statement import is not supported for card '{card_id}'")
    return config


def parse_date(value: str) -> date | None:
    """Parse the date formats seen in issuer exports."""
    value = (value or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_amount(value: str) -> float:
    """Parse ``-25.00``, ``$1,234.56`` or ``(25.00)`` style amounts.

    Raises ValueError for anything else.
    """
    cleaned = (value or "").strip().replace("$", "").replace(",", "")
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = "-" + cleaned[1:-1]
    if not cleaned:
        raise ValueError("empty amount")
    return float(cleaned)


def _cell(row: dict, column: str | None) -> str:
    if not column:
        return ""
    return (row.get(column) or "").strip().strip('"')


def parse_statement(csv_content: str, config: StatementConfig) -> list[ParsedTransaction]:
    """Parse CSV content into transactions, keeping the statement's sign.

    Rows without a parseable date are skipped. A missing required column or an
    unparseable amount raises StatementParseError.
    """
    reader = csv.DictReader(io.StringIO(csv_content.lstrip("\ufeff")))

    fieldnames = [name.strip() for name in (reader.fieldnames or [])]
    reader.fieldnames = fieldnames
    required = (config.date_column, config.description_column, config.amount_column)
    missing = [column for column in required if column not in fieldnames]
    if missing:
        raise StatementParseError(f"Missing required column(s): {', '.join(missing)}")

    transactions = []
    for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is row 1)
        date_str = _cell(row, config.date_column)
        txn_date = parse_date(date_str)
        if not txn_date:
            logger.debug(f"Row {row_num}: skipping row without a valid date '{date_str}'")
            continue

        description = _cell(row, config.description_column)
        if config.decode_html:
            description = html.unescape(description)

        amount_str = _cell(row, config.amount_column)
        try:
            amount = parse_amount(amount_str)
        except ValueError:
            raise StatementParseError(f"Row {row_num}: Invalid amount '{amount_str}'") from None

        reference = _cell(row, config.reference_column).replace("'", "")
        transactions.append(ParsedTransaction(
            date=txn_date,
            description=description,
            amount=amount,
            extended_details=_cell(row, config.extended_details_column) or None,
            category=_cell(row, config.category_column) or None,
            reference=reference or None,
            type=_cell(row, config.type_column) or None,
        ))

    return transactions
