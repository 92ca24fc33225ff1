"""
Pydantic param models for API endpoints.

Usage:
    from api.contracts.pydantic_models import DashboardParams

    params = DashboardParams.model_validate(request.args.to_dict())
"""

from .base import BaseParamsModel
from .dashboard import DashboardParams, ProjectsParams

__all__ = [
    'BaseParamsModel',
    'DashboardParams',
    'ProjectsParams',
]
