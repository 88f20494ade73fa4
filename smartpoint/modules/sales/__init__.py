"""
Sales module

Checkout, refund and failure of sales. Totals, change and payment status are
derived by ``computation`` and re-applied on every flush of a Sale.
"""
