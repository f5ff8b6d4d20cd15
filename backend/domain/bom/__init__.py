"""
BOM Domain - Hierarchical Bill of Materials trees.

A BOM is a tree of up to seven levels:
- Levels 1-5 are assemblies (machine, unit, sub-module, family, group)
- Level 6 holds primary parts
- Level 7 holds alternates of the primary part above them

Nodes are immutable values; every edit produces a new tree.
"""
