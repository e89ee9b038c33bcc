"""
StructureScan building-inspection report renderer.
"""

__version__ = "1.0.0"
