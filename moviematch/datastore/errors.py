"""
Datastore exceptions.
"""


class AlreadyExistsError(Exception):
    """Conditional create failed because the record already exists."""

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} already exists: {key}")
