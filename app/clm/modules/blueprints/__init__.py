"""
Blueprints module.

- A blueprint is a reusable field layout (text/date/signature/checkbox slots)
- Blueprints are immutable once saved; edits are full replacements under the same id
- Deleting a blueprint never touches contracts instantiated from it
"""
