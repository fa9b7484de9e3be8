# app/services/support/document_number_service.py

from datetime import datetime, timezone

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import COMPANY_CODE
from app.models.support.document_sequence_models import DocumentSequence
from app.utils.logger import get_logger

logger = get_logger(__name__)

QUOTATION_PREFIX = "SQ"
SALES_ORDER_PREFIX = "SO"
PURCHASE_ORDER_PREFIX = "PO"

QUOTATION_REVISION = "R0"
SEQUENCE_WIDTH = 4


def document_prefix(doc_type: str, now: datetime) -> str:
    """Type + YY + company code + MM, e.g. SQ251502. Counters are kept per prefix, so they reset monthly."""
    return f"{doc_type}{now:%y}{COMPANY_CODE}{now:%m}"


def _sequence_of(number: str | None, prefix: str) -> int:
    if not number or not number.startswith(prefix):
        return 0
    digits = number[len(prefix):len(prefix) + SEQUENCE_WIDTH]
    return int(digits) if digits.isdigit() else 0


async def next_document_number(
    db: AsyncSession,
    doc_type: str,
    number_column,
    *,
    revision: str = "",
    now: datetime | None = None,
) -> str:
    """
    Draws the next number from the document_sequences counter.

    The increment is a single UPDATE ... RETURNING, so concurrent callers never
    read the same value. A prefix seen for the first time is seeded from the
    highest number already stored in `number_column`.
    """
    now = now or datetime.now(timezone.utc)
    prefix = document_prefix(doc_type, now)

    result = await db.execute(
        update(DocumentSequence)
        .where(DocumentSequence.prefix == prefix)
        .values(last_value=DocumentSequence.last_value + 1)
        .returning(DocumentSequence.last_value)
    )
    value = result.scalar_one_or_none()

    if value is None:
        last_number = await db.scalar(
            select(func.max(number_column)).where(number_column.like(f"{prefix}%"))
        )
        value = _sequence_of(last_number, prefix) + 1
        db.add(DocumentSequence(prefix=prefix, last_value=value))
        await db.flush()
        logger.info("Document sequence seeded", extra={"prefix": prefix, "value": value})

    return f"{prefix}{value:0{SEQUENCE_WIDTH}d}{revision}"
