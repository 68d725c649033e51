"""Referential-integrity engine for competition data files.

Positional line ids of the hierarchy file (compobj.txt), reference rewrite
across the seven dependent files, and validation of the whole dataset.
"""

__version__ = "0.1.0"
