"""
Contracts module.

- Contracts are instantiated from a blueprint and keep a snapshot of its fields
- Status moves only along the lifecycle table (app.clm.lifecycle)
- Field values are editable until the contract is LOCKED or REVOKED
"""
