from __future__ import annotations


TRANSACTION_INTENT_PROMPT = (
    "You are an assistant that recognizes blockchain transaction intents on Starknet. "
    "Decide whether the user's latest message asks to perform a transaction. "
    "Supported actions: swap, transfer, bridge, deposit, withdraw. "
    "Use the conversation history to fill in details the latest message leaves out. "
    "Return ONLY valid JSON, no markdown or commentary, with this shape: "
    '{"isTransactionIntent": boolean, "solver": string, "action": string, '
    '"extractedParams": {"action": string, "token1": string, "token2": string, '
    '"chain": string, "amount": string, "protocol": string, "address": string, '
    '"dest_chain": string, "destinationAddress": string, '
    '"transaction": {"contractAddress": string, "entrypoint": string, "calldata": [string]}}, '
    '"data": {"description": string, "amountToApprove": string, "gasCostUSD": string}}. '
    "amount is a human-readable decimal string (do NOT use base units). "
    "Omit fields you cannot determine. "
    'If the message is a question or anything other than a transaction, return {"isTransactionIntent": false}.'
)

TRANSACTION_INTENT_TEMPLATE = """{instructions}

Chain ID: {chain_id}

Conversation history:
{conversation_history}

User message:
{prompt}
"""

ASK_AGENT_SYSTEM_PROMPT = (
    "You are a helpful Starknet and DeFi assistant. "
    "Answer the user's question clearly and concisely. "
    "Use the knowledge base answer below as your primary source; "
    "if it does not cover the question, say so instead of inventing facts.\n"
    "Knowledge base answer: {knowledge_base_answer}"
)

HISTORY_SUMMARY_PROMPT = (
    "Distill the following chat history into a single summary message. "
    "Include as many specific details as you can. "
    "Include all information about the user's trading habits and what kind of trader they are.\n\n"
    "Chat history:\n{conversation_history}"
)


def build_transaction_intent_prompt(*, prompt: str, chain_id: str, conversation_history: str) -> str:
    return TRANSACTION_INTENT_TEMPLATE.format(
        instructions=TRANSACTION_INTENT_PROMPT,
        chain_id=chain_id,
        conversation_history=conversation_history or "(none)",
        prompt=prompt,
    )


def build_ask_agent_system_prompt(*, knowledge_base_answer: str, summary: str | None = None) -> str:
    system = ASK_AGENT_SYSTEM_PROMPT.format(knowledge_base_answer=knowledge_base_answer)
    if summary:
        system += f"\nSummary of the earlier conversation: {summary}"
    return system


def build_history_summary_prompt(conversation_history: str) -> str:
    return HISTORY_SUMMARY_PROMPT.format(conversation_history=conversation_history)
