"""
Base Pydantic model for all API param schemas.

Key features:
- frozen=True: Immutable after normalization (prevents downstream mutation)
- populate_by_name=True: Accept both alias and field name
- extra='ignore': Ignore undeclared fields (safe)
- area / industry: 'all' and '' normalized to None at the boundary
"""

from pydantic import BaseModel, ConfigDict, field_validator

from constants import FILTER_ALL


class BaseParamsModel(BaseModel):
    """
    Base model for all API param schemas.

    All param models inherit from this to ensure consistent behavior:
    - Frozen after creation (immutable)
    - Whitespace stripped from strings
    - Both alias and field name accepted
    - Unknown fields ignored
    - Dimension filters normalized: "all" means no filter

    Invariant: Inside backend (after validation), area and industry are a
    concrete value or None. The string "all" never reaches a query.
    """
    model_config = ConfigDict(
        frozen=True,  # Immutable after normalization
        str_strip_whitespace=True,  # Strip whitespace from strings
        populate_by_name=True,  # Accept both alias and field name
        extra='ignore',  # Ignore undeclared fields
    )

    @field_validator('area', 'industry', mode='before', check_fields=False)
    @classmethod
    def normalize_dimension_filter(cls, v):
        """'all' / '' / None -> None. Everything else passes through stripped."""
        if v is None:
            return None
        if isinstance(v, str):
            key = v.strip()
            if key == '' or key.lower() == FILTER_ALL:
                return None
            return key
        return v
