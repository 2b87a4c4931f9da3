"""
Bracket App - Spot Trading Assistant

Inspects spot balances, computes RSI from exchange klines and places
market orders and protective OCO bracket orders sized to the exchange's
lot, tick and notional constraints.
"""

__version__ = "0.1.0"
__author__ = "Bracket App Team"
