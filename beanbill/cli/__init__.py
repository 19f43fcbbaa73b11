"""Command-line interface for beanbill.

Usage:
    beanbill convert FILE... [--source auto] [--output FILE] [--history FILE]
    beanbill rules test DESCRIPTION [--amount -12.5]
    beanbill rules export
"""
