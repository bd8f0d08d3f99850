"""
Till Core — Engine-Agnostic Building Blocks
=============================================
primitives  — Money, customer and loyalty snapshots
commands    — rejection model and outcome contract
config      — checkout-wide settings
time        — injectable clock
"""
