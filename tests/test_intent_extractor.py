from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from app.intents.contracts import BridgeData, ProtocolData, SwapTransferData
from app.intents.extractor import (
    ASSUMED_TOKEN_DECIMALS,
    DEFAULT_SOLVER,
    PLACEHOLDER_TOKEN_DECIMALS,
    IntentExtractor,
    UnsupportedActionError,
    build_transaction_intent,
)


ADDRESS = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
RECIPIENT = "0x0fedcba9876543210fedcba9876543210fedcba9876543210fedcba987654321"
CHAIN_ID = "4012"


def _intent_output(action: str, **params) -> dict:
    return {
        "isTransactionIntent": True,
        "action": action,
        "extractedParams": {"action": action, **params},
    }


def _extract(make_llm, response, *, history=(), address=ADDRESS):
    llm = make_llm(response)
    intent = IntentExtractor(llm).extract("do the thing", address, CHAIN_ID, history)
    return intent, llm


def test_not_a_transaction_intent_returns_none(make_llm):
    intent, _ = _extract(make_llm, {"isTransactionIntent": False, "action": "swap", "extractedParams": {}})
    assert intent is None


def test_missing_intent_flag_returns_none(make_llm):
    intent, _ = _extract(make_llm, {"action": "swap", "extractedParams": {"amount": "1"}})
    assert intent is None


@pytest.mark.parametrize("raw", ["not json at all", "", "```json\n{}\n```", "[1, 2]", '"swap"'])
def test_unparseable_output_returns_none(make_llm, raw):
    intent, _ = _extract(make_llm, raw)
    assert intent is None


def test_generation_service_error_returns_none(make_llm):
    llm = make_llm(error=ConnectionError("rate limited"))
    assert IntentExtractor(llm).extract("swap 1 eth", ADDRESS, CHAIN_ID, []) is None


def test_missing_extracted_params_returns_none(make_llm):
    intent, _ = _extract(make_llm, {"isTransactionIntent": True, "action": "swap"})
    assert intent is None


def test_unsupported_action_returns_none(make_llm):
    intent, _ = _extract(make_llm, _intent_output("unsupported_action", amount="1"))
    assert intent is None


def test_unsupported_action_raises_inside_builder():
    with pytest.raises(UnsupportedActionError):
        build_transaction_intent(_intent_output("stake", amount="1"), address=ADDRESS)


def test_swap_without_transaction_fields_has_no_steps(make_llm):
    intent, _ = _extract(make_llm, _intent_output("swap", token1="ETH", token2="USDC", amount="2.5"))

    assert intent is not None
    assert isinstance(intent.data, SwapTransferData)
    assert intent.data.steps == []
    assert intent.data.fromAmount == "2.5"
    assert intent.data.toAmount == "2.5"
    assert intent.data.fromToken.symbol == "ETH"
    assert intent.data.toToken.symbol == "USDC"
    assert intent.data.fromToken.decimals == PLACEHOLDER_TOKEN_DECIMALS
    assert intent.data.toToken.decimals == PLACEHOLDER_TOKEN_DECIMALS


def test_swap_with_transaction_fields_builds_single_step(make_llm):
    output = _intent_output(
        "swap",
        token1="ETH",
        token2="USDC",
        amount="1",
        transaction={"contractAddress": "0xC", "entrypoint": "transfer", "calldata": ["ignored", "42"]},
    )
    intent, _ = _extract(make_llm, output)

    assert intent is not None
    assert len(intent.data.steps) == 1
    step = intent.data.steps[0]
    assert step.contractAddress == "0xC"
    assert step.entrypoint == "transfer"
    assert step.calldata == [ADDRESS, "1000000000000000000", "0"]
    assert str(10**ASSUMED_TOKEN_DECIMALS) == step.calldata[1]


def test_transfer_calldata_uses_destination_address(make_llm):
    output = _intent_output(
        "transfer",
        token1="STRK",
        amount="0.5",
        destinationAddress=RECIPIENT,
        transaction={"contractAddress": "0xC", "entrypoint": "transfer", "calldata": []},
    )
    intent, _ = _extract(make_llm, output)

    assert intent.data.steps[0].calldata == [RECIPIENT, "500000000000000000", "0"]
    assert intent.extractedParams.destinationAddress == RECIPIENT


@pytest.mark.parametrize(
    "transaction",
    [
        {"contractAddress": "0xC", "entrypoint": "transfer"},
        {"contractAddress": "0xC", "calldata": []},
        {"entrypoint": "transfer", "calldata": []},
        {"contractAddress": "", "entrypoint": "transfer", "calldata": []},
    ],
)
def test_partial_transaction_fields_build_no_steps(make_llm, transaction):
    intent, _ = _extract(make_llm, _intent_output("transfer", amount="1", transaction=transaction))
    assert intent is not None
    assert intent.data.steps == []


def test_step_with_non_numeric_amount_returns_none(make_llm):
    output = _intent_output(
        "transfer",
        amount="lots",
        transaction={"contractAddress": "0xC", "entrypoint": "transfer", "calldata": []},
    )
    intent, _ = _extract(make_llm, output)
    assert intent is None


def test_swap_carries_model_data_fields(make_llm):
    output = _intent_output("swap", token1="ETH", token2="USDC", amount=3)
    output["data"] = {"description": "Swap ETH for USDC", "amountToApprove": "3", "gasCostUSD": 0.12}
    intent, _ = _extract(make_llm, output)

    assert intent.data.description == "Swap ETH for USDC"
    assert intent.data.amountToApprove == "3"
    assert intent.data.gasCostUSD == "0.12"
    assert intent.extractedParams.amount == "3"
    assert intent.data.receiver == ADDRESS


def test_swap_token_address_stays_empty_when_model_omits_it(make_llm):
    intent, _ = _extract(make_llm, _intent_output("swap", amount="1"))
    assert intent.data.fromToken.address == ""
    assert intent.data.toToken.address == ""


def test_deposit_defaults_address_to_caller(make_llm):
    intent, _ = _extract(make_llm, _intent_output("deposit", token1="USDC", amount="100", protocol="nostra"))

    assert intent is not None
    assert intent.extractedParams.address == ADDRESS
    assert intent.extractedParams.destinationAddress == ADDRESS
    assert isinstance(intent.data, ProtocolData)
    assert intent.data.protocol == "nostra"
    assert intent.data.fromAmount == "100"
    assert intent.data.toAmount == "100"
    assert intent.data.receiver == ADDRESS
    assert intent.data.steps == []
    assert intent.data.description == ""


def test_withdraw_uses_model_address_as_receiver(make_llm):
    intent, _ = _extract(make_llm, _intent_output("withdraw", amount="5", address=RECIPIENT))
    assert intent.extractedParams.address == RECIPIENT
    assert intent.data.receiver == RECIPIENT
    assert intent.data.protocol == ""


def test_bridge_without_amount_defaults_to_zero(make_llm):
    intent, _ = _extract(make_llm, _intent_output("bridge", token1="ETH", token2="ETH", chain="starknet", dest_chain="base"))

    assert intent is not None
    assert isinstance(intent.data, BridgeData)
    bridge = intent.data.bridge
    assert bridge.amount == 0
    assert bridge.sourceNetwork == "starknet"
    assert bridge.destinationNetwork == "base"
    assert bridge.sourceAddress == ADDRESS
    assert bridge.destinationAddress == ADDRESS
    assert intent.extractedParams.dest_chain == "base"
    assert intent.extractedParams.destinationChain == "base"
    assert intent.data.steps == []


def test_bridge_amount_is_parsed_as_float(make_llm):
    output = _intent_output("bridge", amount="0.25 ETH", destinationAddress=RECIPIENT)
    intent, _ = _extract(make_llm, output)

    assert intent.data.bridge.amount == 0.25
    assert intent.data.bridge.destinationAddress == RECIPIENT
    # the source is always the caller's wallet
    assert intent.data.bridge.sourceAddress == ADDRESS


def test_missing_fields_default_to_empty_strings(make_llm):
    intent, _ = _extract(make_llm, {"isTransactionIntent": True, "action": "swap", "extractedParams": {}})

    params = intent.extractedParams
    assert params.action == ""
    assert params.token1 == ""
    assert params.token2 == ""
    assert params.chain == ""
    assert params.amount == ""
    assert params.protocol == ""
    assert params.dest_chain == ""
    assert params.address == ADDRESS
    assert params.destinationAddress == ADDRESS


def test_solver_defaults_and_can_be_supplied(make_llm):
    intent, _ = _extract(make_llm, _intent_output("swap", amount="1"))
    assert intent.solver == DEFAULT_SOLVER

    output = _intent_output("swap", amount="1")
    output["solver"] = "custom-solver"
    intent, _ = _extract(make_llm, output)
    assert intent.solver == "custom-solver"


def test_prompt_includes_history_and_chain(make_llm):
    history = [
        {"role": "user", "content": "I hold some ETH"},
        {"role": "assistant", "content": "Nice."},
    ]
    _, llm = _extract(make_llm, {"isTransactionIntent": False}, history=history)

    assert len(llm.prompts) == 1
    sent = llm.prompts[0]
    assert "user: I hold some ETH\nassistant: Nice." in sent
    assert CHAIN_ID in sent
    assert "do the thing" in sent


def test_intent_serializes_kind_as_type(make_llm):
    intent, _ = _extract(make_llm, _intent_output("swap", amount="1"))
    wire = intent.to_wire()

    assert wire["type"] == "write"
    assert wire["action"] == "swap"
    assert "kind" not in wire


def test_intent_is_immutable(make_llm):
    intent, _ = _extract(make_llm, _intent_output("swap", amount="1"))
    with pytest.raises(ValidationError):
        intent.action = "bridge"


def test_extract_is_idempotent(make_llm):
    output = _intent_output(
        "transfer",
        token1="ETH",
        amount="1.5",
        transaction={"contractAddress": "0xC", "entrypoint": "transfer", "calldata": []},
    )
    llm = make_llm(output)
    extractor = IntentExtractor(llm)

    first = extractor.extract("send 1.5 eth", ADDRESS, CHAIN_ID, [])
    second = extractor.extract("send 1.5 eth", ADDRESS, CHAIN_ID, [])

    assert json.dumps(first.to_wire(), sort_keys=True) == json.dumps(second.to_wire(), sort_keys=True)
    assert first.model_dump_json(by_alias=True) == second.model_dump_json(by_alias=True)


DEEP_ARRAY = "[" * 200000 + "]" * 200000


@pytest.mark.parametrize(
    "raw",
    [
        DEEP_ARRAY,
        '{"isTransactionIntent": true, "action": "swap", "extractedParams": {}, "x": ' + DEEP_ARRAY + "}",
    ],
)
def test_deeply_nested_output_returns_none(make_llm, raw):
    intent, _ = _extract(make_llm, raw)
    assert intent is None


def test_out_of_range_amount_returns_none(make_llm):
    output = _intent_output(
        "transfer",
        amount="1e100000000",
        transaction={"contractAddress": "0xC", "entrypoint": "transfer", "calldata": []},
    )
    intent, _ = _extract(make_llm, output)
    assert intent is None


@pytest.mark.parametrize("calldata", ["", "   ", 0, None, {}])
def test_calldata_must_be_supplied_like_the_other_step_fields(make_llm, calldata):
    transaction = {"contractAddress": "0xC", "entrypoint": "transfer", "calldata": calldata}
    intent, _ = _extract(make_llm, _intent_output("transfer", amount="1", transaction=transaction))
    assert intent is not None
    assert intent.data.steps == []


def test_blank_entrypoint_builds_no_steps(make_llm):
    transaction = {"contractAddress": "0xC", "entrypoint": "  ", "calldata": []}
    intent, _ = _extract(make_llm, _intent_output("transfer", amount="1", transaction=transaction))
    assert intent.data.steps == []


@pytest.mark.parametrize("history", [[object()], [42], 7])
def test_unformattable_history_returns_none(make_llm, history):
    llm = make_llm(_intent_output("swap", amount="1"))
    assert IntentExtractor(llm).extract("swap 1 eth", ADDRESS, CHAIN_ID, history) is None
    assert llm.prompts == []
