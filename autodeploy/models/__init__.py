"""Data models for autodeploy."""
from autodeploy.models.deployment import (
    DatabaseEngine,
    DeploymentRequest,
    DeploymentResult,
    ServiceUnit,
    SiteConfig,
    Stack,
    WebServer,
)

__all__ = [
    'DatabaseEngine',
    'DeploymentRequest',
    'DeploymentResult',
    'ServiceUnit',
    'SiteConfig',
    'Stack',
    'WebServer',
]
