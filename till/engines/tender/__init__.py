"""
Till Tender Engine
====================
Split-tender settlement: how much is still owed, what each payment
method may contribute, how much change is due, and when the checkout
may close.
"""
