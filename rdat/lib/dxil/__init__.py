"""
A library to parse DXIL runtime data (RDAT), the reflection blob that accompanies compiled
shader libraries. The module `rdat.lib.dxil.runtime` decodes the container into zero-copy table
readers, and `rdat.lib.dxil.reflection` materializes these into a self-contained description of
the library's functions and resources.
"""
