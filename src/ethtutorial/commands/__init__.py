"""
Command implementations for the ethtutorial CLI.

Each module corresponds to a top-level command or command group:
- wallet:    Create, save and validate keys
- query:     Blocks, transactions, receipts and confirmation waiting
- subscribe: Follow new blocks
- transfer:  Send ETH
- token:     ERC-20 balance, supply and transfers
- deploy:    Deploy the MYERC20 contract
- watch:     Print contract events as they arrive
- ping:      Private-chain connection check
- demo:      Run the whole tutorial in sequence
"""
