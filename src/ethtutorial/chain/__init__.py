"""
Chain - on-chain interaction layer for the tutorial client.

Provides the JSON-RPC client, ABI helpers, fee suggestion, transaction
building and confirmation waiting, plus the task modules built on them
(blocks, queries, transfers, token reads, deployment, events).

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
