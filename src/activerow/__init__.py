"""
activerow - declarative active-record mapping for relational tables.

Entities are plain classes whose annotations say how each field maps to a
column; ``activerow.core`` derives the mapping once per type and provides
get / find / create / save / remove on top of it.
"""

__version__ = "0.1.0"

# Re-export everything from the actual implementation
from activerow.core import *  # noqa
from activerow.core import __all__ as _core_all

__all__ = ["__version__", *_core_all]
