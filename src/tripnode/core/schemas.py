from __future__ import annotations

from typing import Any, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, StrictFloat, StrictInt, StrictStr, ValidationError

from tripnode.core.exceptions import PayloadValidationError

ModelT = TypeVar("ModelT", bound="WireModel")

# Numbers are kept exactly as received: no str->number coercion, no int->float widening.
Number = Union[StrictInt, StrictFloat]


class WireModel(BaseModel):
    """
    Base for payloads that use camelCase names on the wire.

    Unknown fields are kept. A model built with from_wire() remembers the
    mapping it was validated from and to_wire() returns that mapping, so a
    forwarded body is byte-for-byte what the client sent.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    _wire: Optional[dict[str, Any]] = PrivateAttr(default=None)

    @classmethod
    def from_wire(cls: Type[ModelT], data: Any) -> ModelT:
        model = cls.model_validate(data)
        model._wire = data
        return model

    def to_wire(self) -> dict[str, Any]:
        if self._wire is not None:
            return self._wire
        return self.model_dump(by_alias=True, exclude_none=True)


class TransactionRequest(WireModel):
    sender: StrictStr = Field(alias="from", min_length=1)
    recipient: StrictStr = Field(alias="to", min_length=1)
    amount: Number
    signature: Optional[StrictStr] = None
    timestamp: Optional[StrictStr] = None


class BatchTransactionRequest(WireModel):
    transactions: list[TransactionRequest] = Field(min_length=1)


class CriticalProcessRequest(WireModel):
    process_id: StrictStr = Field(alias="processId", min_length=1)
    # Opaque to this node; forwarded to validators untouched.
    data: Any
    priority: Number
    timestamp: Optional[StrictStr] = None


class BlockchainStatus(WireModel):
    height: int
    last_block_hash: str = Field(alias="lastBlockHash")
    difficulty: int
    total_transactions: int = Field(alias="totalTransactions")


class MempoolStatus(WireModel):
    pending_transactions: int = Field(alias="pendingTransactions")
    total_size: int = Field(alias="totalSize")
    oldest_transaction: Optional[str] = Field(default=None, alias="oldestTransaction")


def parse_payload(model: Type[ModelT], data: Any) -> ModelT:
    """
    Validate an inbound payload against a schema.

    The returned model forwards ``data`` unchanged through to_wire().

    Raises:
        PayloadValidationError: If the payload does not match the schema
    """
    if data is None:
        raise PayloadValidationError("Request body must be a JSON object")
    try:
        return model.from_wire(data)
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise PayloadValidationError(
            f"Invalid {model.__name__} payload",
            details={"errors": errors},
        ) from exc
