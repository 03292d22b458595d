"""
Library modules of the `rdat` package: byte level structure reading, logging and configuration,
JSON serialization, and the parser for DXIL runtime data in `rdat.lib.dxil`.
"""
