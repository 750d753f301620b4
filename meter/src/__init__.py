"""
Smart-meter telegram daemon package.

Reads DSMR-style telegrams from a P1 gateway, turns the cumulative energy
registers into per-tariff readings, stores each distinct counter value once,
and reports usage over a date span.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""
