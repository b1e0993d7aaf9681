"""
LoreFlow Exceptions module.

Load-time failures are fatal and raise ``ConfigError``. Unknown scopes and
entities referenced by seed rules are raised and caught inside the seeder,
which logs them and moves on to the next rule.
"""


class LoreFlowError(Exception):
    """Base class for all LoreFlow errors."""


class ConfigError(LoreFlowError):
    """A world, fact or seed source is missing or malformed."""


class UnknownScope(LoreFlowError):
    """A seed rule references a scope template that does not exist."""

    def __init__(self, scope_name: str):
        super().__init__(f"Unknown scope '{scope_name}'")
        self.scope_name = scope_name


class UnknownEntity(LoreFlowError):
    """A seed rule references an entity that is not in the fact graph."""

    def __init__(self, entity_id: str):
        super().__init__(f"Unknown entity '{entity_id}'")
        self.entity_id = entity_id
