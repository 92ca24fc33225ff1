"""
Contract package - param models validated at the API boundary.
"""

from .pydantic_models import BaseParamsModel, DashboardParams, ProjectsParams

__all__ = ['BaseParamsModel', 'DashboardParams', 'ProjectsParams']
