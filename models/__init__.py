"""
models/ - Domain Models
=======================
Dataclasses mapped to tables through the record layer.
"""
