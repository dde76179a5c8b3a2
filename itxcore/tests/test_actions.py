"""
Tests for itxcore.actions and itxcore.protocol
"""

import pytest

from itxcore import protocol
from itxcore.actions import (
    ACTION_TYPES,
    ACTIONS_BY_CODE,
    REQUEST_CODES,
    RESPONSE_CODES,
    ActionValidationError,
    BallotCast,
    ContractFormation,
    ContractOffer,
    Entity,
    InstrumentCreation,
    InstrumentTransfer,
    Order,
    Proposal,
    QuantityIndex,
    Rejection,
    Transfer,
)
from itxcore.protocol import ProtocolError
from itxcore.script import push_data


class TestActionTables:
    def test_codes_unique(self):
        assert len(ACTIONS_BY_CODE) == len(ACTION_TYPES) == 28

    def test_request_and_response_disjoint(self):
        assert not REQUEST_CODES & RESPONSE_CODES

    def test_classified_codes_are_known(self):
        assert REQUEST_CODES | RESPONSE_CODES <= set(ACTIONS_BY_CODE)

    def test_message_is_neither(self):
        assert "M1" not in REQUEST_CODES
        assert "M1" not in RESPONSE_CODES

    def test_examples(self):
        assert "T1" in REQUEST_CODES
        assert "T2" in RESPONSE_CODES
        assert "C1" in REQUEST_CODES
        assert "C2" in RESPONSE_CODES

    def test_tables_immutable(self):
        assert isinstance(REQUEST_CODES, frozenset)
        assert isinstance(RESPONSE_CODES, frozenset)


class TestValidation:
    def test_valid_offer(self):
        offer = ContractOffer(contract_name="Test", issuer=Entity(name="Issuer", country_code="AUS"))
        offer.validate_message()

    def test_contract_name_too_long(self):
        with pytest.raises(ActionValidationError, match="contract_name"):
            ContractOffer(contract_name="x" * 256).validate_message()

    def test_bad_issuer(self):
        offer = ContractOffer(issuer=Entity(country_code="AU"))
        with pytest.raises(ActionValidationError, match="country_code"):
            offer.validate_message()

    def test_transfer_requires_instruments(self):
        with pytest.raises(ActionValidationError, match="no instruments"):
            Transfer().validate_message()

    def test_transfer_requires_positive_quantities(self):
        transfer = Transfer(
            instruments=[
                InstrumentTransfer(
                    instrument_type="SHC",
                    senders=[QuantityIndex(index=0, quantity=0)],
                )
            ]
        )
        with pytest.raises(ActionValidationError, match="instrument 0: quantity 0"):
            transfer.validate_message()

    def test_valid_transfer(self):
        Transfer(
            instruments=[
                InstrumentTransfer(
                    instrument_type="SHC",
                    instrument_code="ab" * 32,
                    senders=[QuantityIndex(index=0, quantity=10)],
                )
            ]
        ).validate_message()

    def test_order_compliance_action(self):
        with pytest.raises(ActionValidationError, match="compliance_action"):
            Order(compliance_action="X").validate_message()
        Order(compliance_action="F").validate_message()

    def test_proposal_vote_max(self):
        with pytest.raises(ActionValidationError, match="vote_max"):
            Proposal(vote_options="AB", vote_max=3).validate_message()
        Proposal(vote_options="AB", vote_max=1).validate_message()

    def test_ballot_cast(self):
        with pytest.raises(ActionValidationError, match="vote_tx_id"):
            BallotCast(vote="A").validate_message()
        BallotCast(vote_tx_id="cd" * 32, vote="A").validate_message()

    def test_instrument_creation_requires_code(self):
        with pytest.raises(ActionValidationError, match="instrument_code required"):
            InstrumentCreation(instrument_type="CCY").validate_message()

    def test_rejection_code_range(self):
        with pytest.raises(ActionValidationError, match="out of range"):
            Rejection(rejection_code=256).validate_message()


class TestEnvelope:
    @pytest.mark.parametrize("is_test", [True, False])
    def test_round_trip(self, is_test):
        action = ContractFormation(contract_name="Test", contract_revision=2, timestamp=1234)
        script = protocol.serialize(action, is_test)
        decoded = protocol.deserialize(script, is_test)
        assert isinstance(decoded, ContractFormation)
        assert decoded == action
        assert decoded.code == "C2"

    def test_layout(self):
        script = protocol.serialize(ContractOffer(), True)
        assert script[:2] == b"\x00\x6a"
        assert script[2:11] == push_data(b"test.TKN")
        assert script[11:13] == push_data(b"\x00")
        assert script[13:16] == push_data(b"C1")

    def test_network_mismatch(self):
        script = protocol.serialize(ContractOffer(), True)
        with pytest.raises(ProtocolError, match="protocol id"):
            protocol.deserialize(script, False)

    def test_not_envelope(self, p2pkh_script):
        with pytest.raises(ProtocolError):
            protocol.deserialize(p2pkh_script, True)

    def test_unknown_code(self):
        script = (
            b"\x00\x6a"
            + push_data(b"test.TKN")
            + push_data(b"\x00")
            + push_data(b"Z9")
            + push_data(b"{}")
        )
        with pytest.raises(ProtocolError, match="Unknown action code"):
            protocol.deserialize(script, True)

    def test_wrong_version(self):
        script = (
            b"\x00\x6a"
            + push_data(b"TKN")
            + push_data(b"\x01")
            + push_data(b"C1")
            + push_data(b"{}")
        )
        with pytest.raises(ProtocolError, match="version"):
            protocol.deserialize(script, False)

    def test_invalid_payload(self):
        script = (
            b"\x00\x6a"
            + push_data(b"TKN")
            + push_data(b"\x00")
            + push_data(b"C1")
            + push_data(b'{"unknown_field": 1}')
        )
        with pytest.raises(ProtocolError, match="Invalid C1 payload"):
            protocol.deserialize(script, False)

    def test_extra_push(self):
        script = protocol.serialize(ContractOffer(), False) + push_data(b"extra")
        with pytest.raises(ProtocolError, match="four pushes"):
            protocol.deserialize(script, False)

    def test_invalid_action_still_decodes(self):
        action = Order(compliance_action="X")
        decoded = protocol.deserialize(protocol.serialize(action, False), False)
        assert decoded == action
        with pytest.raises(ActionValidationError):
            decoded.validate_message()
