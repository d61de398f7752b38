"""COSMIC functional-process table engine.

Parses generator-authored pipe tables into sub-process rows, repairs merged cells and
column drift, keeps data groups / attribute lists unique, and drives multi-round
accumulation until a target number of functional processes is reached.
"""

__version__ = "0.1.0"
