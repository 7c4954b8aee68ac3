"""
Outbound data ingestion (Solana RPC, Helius enhanced transactions).
"""
