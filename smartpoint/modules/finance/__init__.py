"""
Finance module

Revenue rollups over sales. Revenue always means collected money
(``paid_amount``); the billed ``total`` is only reported as such.
"""
