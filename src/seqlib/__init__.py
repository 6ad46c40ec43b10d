"""
Top-level module: sequence alphabets, genetic codes, sequence containers, file formats and option-driven
construction of all of them for analysis pipelines.
"""
from seqlib.lib.resources import RESOURCES


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class SeqlibWarning(Warning): pass


# Constants ------------------------------------------------------------------------------------------------------------
__version__ = RESOURCES.version
