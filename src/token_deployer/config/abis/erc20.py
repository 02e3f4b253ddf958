"""
ERC20 transfer ABI.

Only `transfer(address,uint256)` is called natively; everything else goes
through forge/cast with the contract's full artifact.
"""

ERC20_ABI = [
    {
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]
