"""
Protocol actions embedded in locking scripts.

Each action is a pydantic model with a two character CODE. The set of
actions is closed: the protocol codec only ever produces the types listed in
ACTION_TYPES. Structural validation (sizes, enumerations, required
references) is separate from decoding, so a well-formed but invalid action
can still be inspected and rejected.
"""

from __future__ import annotations

import re
from enum import IntEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

MAX_NAME_LENGTH = 255
MAX_TEXT_LENGTH = 65535
INSTRUMENT_TYPE_LENGTH = 3
HASH_HEX_LENGTH = 64

_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2})*$")


class ActionValidationError(Exception):
    """Raised when an action fails structural validation."""

    pass


class RejectionCode(IntEnum):
    SUCCESS = 0
    MSG_MALFORMED = 1
    TX_MALFORMED = 2
    TIMEOUT = 3
    CONTRACT_MOVED = 4
    DOUBLE_SPEND = 5
    CONTRACT_EXISTS = 10
    INSUFFICIENT_QUANTITY = 40


def _check_length(field: str, value: str, limit: int) -> None:
    if len(value) > limit:
        raise ActionValidationError(f"{field} too long: {len(value)} > {limit}")


def _check_hex(field: str, value: str, length: int | None = None, required: bool = False) -> None:
    if not value:
        if required:
            raise ActionValidationError(f"{field} required")
        return
    if not _HEX_RE.match(value):
        raise ActionValidationError(f"{field} is not hex")
    if length is not None and len(value) != length:
        raise ActionValidationError(f"{field} wrong size: {len(value) // 2} bytes")


def _check_instrument_type(value: str) -> None:
    if len(value) != INSTRUMENT_TYPE_LENGTH:
        raise ActionValidationError(f"instrument_type must be {INSTRUMENT_TYPE_LENGTH} characters")


def _check_amendments(amendments: list[Amendment]) -> None:
    for i, amendment in enumerate(amendments):
        try:
            amendment.check()
        except ActionValidationError as e:
            raise ActionValidationError(f"amendment {i}: {e}") from e


def _check_quantities(quantities: list[QuantityIndex]) -> None:
    for i, item in enumerate(quantities):
        if item.quantity <= 0:
            raise ActionValidationError(f"quantity {i} must be positive")


class _Model(BaseModel):
    model_config = ConfigDict(extra="forbid")


class Entity(_Model):
    name: str = ""
    type: str = ""
    country_code: str = ""

    def check(self) -> None:
        _check_length("name", self.name, MAX_NAME_LENGTH)
        if len(self.type) > 1:
            raise ActionValidationError("entity type must be a single character")
        if self.country_code and len(self.country_code) != 3:
            raise ActionValidationError("country_code must be 3 characters")


class Amendment(_Model):
    field_index_path: list[int] = Field(default_factory=list)
    operation: int = 0  # 0 modify, 1 add element, 2 delete element
    data: str = ""

    def check(self) -> None:
        if not self.field_index_path:
            raise ActionValidationError("field_index_path required")
        if self.operation not in (0, 1, 2):
            raise ActionValidationError(f"unknown operation {self.operation}")
        _check_hex("data", self.data)


class Chapter(_Model):
    title: str = ""
    preamble: str = ""


class QuantityIndex(_Model):
    index: int = Field(default=0, ge=0)
    quantity: int = Field(default=0, ge=0)


class InstrumentReceiver(_Model):
    address: str = ""
    quantity: int = Field(default=0, ge=0)


class TargetAddress(_Model):
    address: str = ""
    quantity: int = Field(default=0, ge=0)


class InstrumentTransfer(_Model):
    contract_index: int = Field(default=0, ge=0)
    instrument_type: str = ""
    instrument_code: str = ""
    senders: list[QuantityIndex] = Field(default_factory=list)
    receivers: list[InstrumentReceiver] = Field(default_factory=list)


class InstrumentSettlement(_Model):
    contract_index: int = Field(default=0, ge=0)
    instrument_type: str = ""
    instrument_code: str = ""
    settlements: list[QuantityIndex] = Field(default_factory=list)


class Action(_Model):
    """Base class for all protocol actions."""

    CODE: ClassVar[str] = ""

    @property
    def code(self) -> str:
        return self.CODE

    def validate_message(self) -> None:
        """
        Check the structure of the action.

        Raises:
            ActionValidationError: Describing the first problem found
        """


# Contract


class _ContractFields(Action):
    contract_name: str = ""
    contract_type: int = Field(default=0, ge=0)
    body_of_agreement_type: int = 0  # 0 none, 1 hash, 2 full
    contract_fee: int = Field(default=0, ge=0)
    issuer: Entity | None = None
    contract_expiration: int = Field(default=0, ge=0)
    contract_uri: str = ""

    def validate_message(self) -> None:
        _check_length("contract_name", self.contract_name, MAX_NAME_LENGTH)
        _check_length("contract_uri", self.contract_uri, MAX_NAME_LENGTH)
        if self.body_of_agreement_type not in (0, 1, 2):
            raise ActionValidationError(
                f"unknown body_of_agreement_type {self.body_of_agreement_type}"
            )
        if self.issuer is not None:
            self.issuer.check()


class ContractOffer(_ContractFields):
    CODE = "C1"


class ContractFormation(_ContractFields):
    CODE = "C2"

    contract_revision: int = Field(default=0, ge=0)
    timestamp: int = Field(default=0, ge=0)


class ContractAmendment(Action):
    CODE = "C3"

    change_administration_address: bool = False
    change_operator_address: bool = False
    contract_revision: int = Field(default=0, ge=0)
    amendments: list[Amendment] = Field(default_factory=list)
    ref_tx_id: str = ""

    def validate_message(self) -> None:
        _check_amendments(self.amendments)
        _check_hex("ref_tx_id", self.ref_tx_id, HASH_HEX_LENGTH)


class StaticContractFormation(Action):
    CODE = "C4"

    contract_name: str = ""
    contract_code: str = ""
    contract_revision: int = Field(default=0, ge=0)
    effective_date: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        _check_length("contract_name", self.contract_name, MAX_NAME_LENGTH)
        _check_hex("contract_code", self.contract_code, HASH_HEX_LENGTH, required=True)


class ContractAddressChange(Action):
    CODE = "C5"

    new_contract_address: str = ""
    timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        _check_hex("new_contract_address", self.new_contract_address, required=True)


# Body of agreement


class BodyOfAgreementOffer(Action):
    CODE = "C6"

    chapters: list[Chapter] = Field(default_factory=list)

    def validate_message(self) -> None:
        for chapter in self.chapters:
            _check_length("chapter title", chapter.title, MAX_NAME_LENGTH)
            _check_length("chapter preamble", chapter.preamble, MAX_TEXT_LENGTH)


class BodyOfAgreementFormation(BodyOfAgreementOffer):
    CODE = "C7"

    revision: int = Field(default=0, ge=0)
    timestamp: int = Field(default=0, ge=0)


class BodyOfAgreementAmendment(Action):
    CODE = "C8"

    revision: int = Field(default=0, ge=0)
    amendments: list[Amendment] = Field(default_factory=list)
    ref_tx_id: str = ""

    def validate_message(self) -> None:
        _check_amendments(self.amendments)
        _check_hex("ref_tx_id", self.ref_tx_id, HASH_HEX_LENGTH)


# Instruments


class _InstrumentFields(Action):
    instrument_type: str = ""
    transfers_permitted: bool = True
    enforcement_orders_permitted: bool = False
    authorized_token_qty: int = Field(default=0, ge=0)
    instrument_payload: str = ""

    def validate_message(self) -> None:
        _check_instrument_type(self.instrument_type)
        _check_hex("instrument_payload", self.instrument_payload)


class _InstrumentCreationFields(_InstrumentFields):
    instrument_code: str = ""
    instrument_index: int = Field(default=0, ge=0)
    instrument_revision: int = Field(default=0, ge=0)
    timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        super().validate_message()
        _check_hex("instrument_code", self.instrument_code, HASH_HEX_LENGTH, required=True)


class _InstrumentModificationFields(Action):
    instrument_type: str = ""
    instrument_code: str = ""
    instrument_revision: int = Field(default=0, ge=0)
    amendments: list[Amendment] = Field(default_factory=list)
    ref_tx_id: str = ""

    def validate_message(self) -> None:
        _check_instrument_type(self.instrument_type)
        _check_hex("instrument_code", self.instrument_code, HASH_HEX_LENGTH, required=True)
        _check_amendments(self.amendments)
        _check_hex("ref_tx_id", self.ref_tx_id, HASH_HEX_LENGTH)


class InstrumentDefinition(_InstrumentFields):
    CODE = "I1"


class InstrumentCreation(_InstrumentCreationFields):
    CODE = "I2"


class InstrumentModification(_InstrumentModificationFields):
    CODE = "I3"


# Deprecated asset actions, still decoded for old transactions


class AssetDefinition(_InstrumentFields):
    CODE = "A1"


class AssetCreation(_InstrumentCreationFields):
    CODE = "A2"


class AssetModification(_InstrumentModificationFields):
    CODE = "A3"


# Transfers


class Transfer(Action):
    CODE = "T1"

    instruments: list[InstrumentTransfer] = Field(default_factory=list)
    offer_expiry: int = Field(default=0, ge=0)
    exchange_fee: int = Field(default=0, ge=0)
    exchange_fee_address: str = ""

    def validate_message(self) -> None:
        if not self.instruments:
            raise ActionValidationError("transfer has no instruments")
        for i, instrument in enumerate(self.instruments):
            try:
                _check_instrument_type(instrument.instrument_type)
                _check_hex("instrument_code", instrument.instrument_code, HASH_HEX_LENGTH)
                if not instrument.senders:
                    raise ActionValidationError("no senders")
                _check_quantities(instrument.senders)
                for receiver in instrument.receivers:
                    _check_hex("receiver address", receiver.address, required=True)
            except ActionValidationError as e:
                raise ActionValidationError(f"instrument {i}: {e}") from e
        _check_hex("exchange_fee_address", self.exchange_fee_address)


class Settlement(Action):
    CODE = "T2"

    instruments: list[InstrumentSettlement] = Field(default_factory=list)
    timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        if not self.instruments:
            raise ActionValidationError("settlement has no instruments")
        for instrument in self.instruments:
            _check_instrument_type(instrument.instrument_type)
            _check_hex("instrument_code", instrument.instrument_code, HASH_HEX_LENGTH)


# Governance


class Proposal(Action):
    CODE = "G1"

    proposal_type: int = 0  # 0 contract, 1 instrument, 2 general
    instrument_type: str = ""
    instrument_code: str = ""
    vote_system: int = Field(default=0, ge=0)
    proposed_amendments: list[Amendment] = Field(default_factory=list)
    vote_options: str = ""
    vote_max: int = Field(default=0, ge=0)
    proposal_description: str = ""
    vote_cut_off_timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        if self.proposal_type not in (0, 1, 2):
            raise ActionValidationError(f"unknown proposal_type {self.proposal_type}")
        if self.proposal_type == 1:
            _check_instrument_type(self.instrument_type)
            _check_hex("instrument_code", self.instrument_code, HASH_HEX_LENGTH, required=True)
        if not self.vote_options:
            raise ActionValidationError("vote_options required")
        if not 1 <= self.vote_max <= len(self.vote_options):
            raise ActionValidationError(
                f"vote_max {self.vote_max} out of range for {len(self.vote_options)} options"
            )
        _check_amendments(self.proposed_amendments)
        _check_length("proposal_description", self.proposal_description, MAX_TEXT_LENGTH)


class Vote(Action):
    CODE = "G2"

    timestamp: int = Field(default=0, ge=0)


class BallotCast(Action):
    CODE = "G3"

    vote_tx_id: str = ""
    vote: str = ""

    def validate_message(self) -> None:
        _check_hex("vote_tx_id", self.vote_tx_id, HASH_HEX_LENGTH, required=True)
        if not self.vote:
            raise ActionValidationError("vote required")


class BallotCounted(Action):
    CODE = "G4"

    vote_tx_id: str = ""
    vote: str = ""
    quantity: int = Field(default=0, ge=0)
    timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        _check_hex("vote_tx_id", self.vote_tx_id, HASH_HEX_LENGTH, required=True)


class Result(Action):
    CODE = "G5"

    instrument_type: str = ""
    instrument_code: str = ""
    proposed_amendments: list[Amendment] = Field(default_factory=list)
    vote_tx_id: str = ""
    option_tally: list[int] = Field(default_factory=list)
    result: str = ""
    timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        _check_hex("vote_tx_id", self.vote_tx_id, HASH_HEX_LENGTH, required=True)
        _check_amendments(self.proposed_amendments)


# Enforcement

COMPLIANCE_ACTIONS = frozenset({"F", "T", "C", "R"})


class Order(Action):
    CODE = "E1"

    compliance_action: str = ""
    instrument_type: str = ""
    instrument_code: str = ""
    target_addresses: list[TargetAddress] = Field(default_factory=list)
    freeze_tx_id: str = ""
    freeze_period: int = Field(default=0, ge=0)
    deposit_address: str = ""
    authority_name: str = ""
    message: str = ""

    def validate_message(self) -> None:
        if self.compliance_action not in COMPLIANCE_ACTIONS:
            raise ActionValidationError(f"unknown compliance_action {self.compliance_action!r}")
        if self.compliance_action == "T":
            _check_hex("freeze_tx_id", self.freeze_tx_id, HASH_HEX_LENGTH, required=True)
        if self.compliance_action == "C":
            _check_hex("deposit_address", self.deposit_address, required=True)
        for target in self.target_addresses:
            _check_hex("target address", target.address, required=True)
        _check_length("authority_name", self.authority_name, MAX_NAME_LENGTH)
        _check_length("message", self.message, MAX_TEXT_LENGTH)


class Freeze(Action):
    CODE = "E2"

    instrument_type: str = ""
    instrument_code: str = ""
    quantities: list[QuantityIndex] = Field(default_factory=list)
    freeze_period: int = Field(default=0, ge=0)
    timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        _check_quantities(self.quantities)


class Thaw(Action):
    CODE = "E3"

    freeze_tx_id: str = ""
    timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        _check_hex("freeze_tx_id", self.freeze_tx_id, HASH_HEX_LENGTH, required=True)


class Confiscation(Action):
    CODE = "E4"

    instrument_type: str = ""
    instrument_code: str = ""
    quantities: list[QuantityIndex] = Field(default_factory=list)
    deposit_qty: int = Field(default=0, ge=0)
    timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        _check_quantities(self.quantities)


class DeprecatedReconciliation(Action):
    CODE = "E5"

    instrument_type: str = ""
    instrument_code: str = ""
    quantities: list[QuantityIndex] = Field(default_factory=list)
    timestamp: int = Field(default=0, ge=0)


# Messages


class Message(Action):
    CODE = "M1"

    sender_indexes: list[int] = Field(default_factory=list)
    receiver_indexes: list[int] = Field(default_factory=list)
    message_code: int = Field(default=0, ge=0)
    message_payload: str = ""

    def validate_message(self) -> None:
        _check_hex("message_payload", self.message_payload)


class Rejection(Action):
    CODE = "M2"

    address_indexes: list[int] = Field(default_factory=list)
    reject_address_index: int = Field(default=0, ge=0)
    rejection_code: int = Field(default=0, ge=0)
    message: str = ""
    timestamp: int = Field(default=0, ge=0)

    def validate_message(self) -> None:
        if self.rejection_code > 0xFF:
            raise ActionValidationError(f"rejection_code {self.rejection_code} out of range")
        _check_length("message", self.message, MAX_TEXT_LENGTH)


ACTION_TYPES: tuple[type[Action], ...] = (
    ContractOffer,
    ContractFormation,
    ContractAmendment,
    StaticContractFormation,
    ContractAddressChange,
    BodyOfAgreementOffer,
    BodyOfAgreementFormation,
    BodyOfAgreementAmendment,
    InstrumentDefinition,
    InstrumentCreation,
    InstrumentModification,
    AssetDefinition,
    AssetCreation,
    AssetModification,
    Transfer,
    Settlement,
    Proposal,
    Vote,
    BallotCast,
    BallotCounted,
    Result,
    Order,
    Freeze,
    Thaw,
    Confiscation,
    DeprecatedReconciliation,
    Message,
    Rejection,
)

ACTIONS_BY_CODE: dict[str, type[Action]] = {cls.CODE: cls for cls in ACTION_TYPES}

# Request message codes
REQUEST_CODES: frozenset[str] = frozenset(
    {
        ContractOffer.CODE,
        ContractAmendment.CODE,
        BodyOfAgreementOffer.CODE,
        BodyOfAgreementAmendment.CODE,
        InstrumentDefinition.CODE,
        InstrumentModification.CODE,
        AssetDefinition.CODE,  # deprecated
        AssetModification.CODE,  # deprecated
        Transfer.CODE,
        Proposal.CODE,
        BallotCast.CODE,
        Order.CODE,
        ContractAddressChange.CODE,
    }
)

# Response message codes
RESPONSE_CODES: frozenset[str] = frozenset(
    {
        InstrumentCreation.CODE,
        AssetCreation.CODE,  # deprecated
        ContractFormation.CODE,
        BodyOfAgreementFormation.CODE,
        Settlement.CODE,
        Vote.CODE,
        BallotCounted.CODE,
        Result.CODE,
        Freeze.CODE,
        Thaw.CODE,
        Confiscation.CODE,
        DeprecatedReconciliation.CODE,
        Rejection.CODE,
    }
)
