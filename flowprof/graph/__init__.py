"""Graph interop helpers.

Conversion of a validated topology into NetworkX graphs (`convert`).
"""
