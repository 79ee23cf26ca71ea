"""
rowgraph - Relational rows to typed object graphs and back.

Layout:
- rowgraph.core: errors, logging, settings, connection adapters, dialects
- rowgraph.mapping: entity metadata, type translation, restrictions and
  the graph materialization engine
"""

__version__ = "0.1.0"

from rowgraph.mapping import *  # noqa
