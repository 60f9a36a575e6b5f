"""
Billing app: pricing, invoice numbering and the invoice ledger.
"""
