# ============================================================================
# FILE: musicvault/schemas/base.py
# ============================================================================
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request/response body using camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
