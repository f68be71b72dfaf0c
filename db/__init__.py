"""
db/ - Database Layer
====================
Handles PostgreSQL connections and raw statement execution.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
