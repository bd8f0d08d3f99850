"""
Till Engines
==============
tender  — split-tender payment settlement
"""
