from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from domain.errors import ReceiptEncodingError
from domain.transactions import EncodedReceipt, Expense

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ReceiptAction(str, Enum):
    KEEP = "keep"
    REPLACE = "replace"
    REMOVE = "remove"


@dataclass(frozen=True)
class ReceiptBlob:
    name: str
    content_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: str | Path) -> ReceiptBlob:
        file_path = Path(path)
        content_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            name=file_path.name,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            data=file_path.read_bytes(),
        )


ReceiptEncoder = Callable[[ReceiptBlob], Awaitable[EncodedReceipt]]


def _data_url(content_type: str, data: bytes) -> str:
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{payload}"


async def encode_receipt(blob: ReceiptBlob) -> EncodedReceipt:
    """Encode a receipt as a base64 data URL off the event loop thread."""
    if not isinstance(blob.data, (bytes, bytearray)):
        raise ReceiptEncodingError(f"Receipt {blob.name!r} has no binary content")
    content_type = blob.content_type or DEFAULT_CONTENT_TYPE
    try:
        data = await asyncio.to_thread(_data_url, content_type, bytes(blob.data))
    except (TypeError, ValueError) as exc:
        raise ReceiptEncodingError(f"Failed to encode receipt {blob.name!r}") from exc
    return EncodedReceipt(name=blob.name, content_type=content_type, data=data)


def decode_receipt(receipt: EncodedReceipt) -> bytes:
    """Inverse of ``encode_receipt``, used when a receipt is exported or previewed."""
    _, _, payload = receipt.data.partition(";base64,")
    return base64.b64decode(payload)


class ReceiptBinder:
    """Resolves the receipt half of an expense write before anything is persisted."""

    def __init__(self, encoder: ReceiptEncoder = encode_receipt) -> None:
        self._encoder = encoder

    async def encode(self, blob: ReceiptBlob) -> EncodedReceipt:
        try:
            encoded = await self._encoder(blob)
        except ReceiptEncodingError:
            logger.warning("Receipt encoding failed for %s", blob.name)
            raise
        logger.debug("Receipt encoded name=%s type=%s", encoded.name, encoded.content_type)
        return encoded

    @staticmethod
    def validate(action: ReceiptAction, blob: ReceiptBlob | None) -> None:
        if action is ReceiptAction.REPLACE and blob is None:
            raise ValueError("Replacing a receipt requires a receipt file")
        if action is not ReceiptAction.REPLACE and blob is not None:
            raise ValueError(
                f"A receipt file was supplied but the receipt action is {action.value!r}"
            )

    @staticmethod
    def receipt_changes(
        action: ReceiptAction, encoded: EncodedReceipt | None = None
    ) -> dict:
        """Field changes an update applies for the chosen receipt action."""
        if action is ReceiptAction.KEEP:
            return {}
        if action is ReceiptAction.REMOVE:
            return {
                "has_receipt": False,
                "receipt_name": None,
                "receipt_type": None,
                "receipt_data": None,
            }
        if encoded is None:
            raise ValueError("Replacing a receipt requires an encoded receipt")
        return {
            "has_receipt": True,
            "receipt_name": encoded.name,
            "receipt_type": encoded.content_type,
            "receipt_data": encoded.data,
        }

    async def attach(self, expense: Expense, blob: ReceiptBlob | None) -> Expense:
        if blob is None:
            return expense.without_receipt()
        return expense.with_receipt(await self.encode(blob))
