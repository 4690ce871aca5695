"""L1/L2 bridge bootstrapper for Starknet app chains."""

__version__ = "0.1.0"
