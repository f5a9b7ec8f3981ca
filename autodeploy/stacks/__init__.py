"""Per-stack installers.

One installer per supported technology:
- Node.js: npm + PM2
- Python: virtualenv + gunicorn/systemd
- Java/Spring: Maven/Gradle jar + systemd
- Laravel: Composer/artisan + php-fpm vhost
- Remix: npm build + systemd + TLS reverse proxy
"""
from typing import Dict, Type

from autodeploy.models.deployment import Stack

from .base import StackInstaller
from .java import JavaInstaller
from .laravel import LaravelInstaller
from .nodejs import NodeInstaller
from .python import PythonInstaller
from .remix import RemixInstaller

INSTALLERS: Dict[Stack, Type[StackInstaller]] = {
    Stack.NODEJS: NodeInstaller,
    Stack.PYTHON: PythonInstaller,
    Stack.JAVA: JavaInstaller,
    Stack.LARAVEL: LaravelInstaller,
    Stack.REMIX: RemixInstaller,
}


def get_installer(stack: Stack) -> Type[StackInstaller]:
    """Return the installer class for a stack."""
    try:
        return INSTALLERS[Stack(stack)]
    except (KeyError, ValueError) as e:
        raise ValueError(f"Unsupported stack: {stack}") from e


__all__ = [
    'INSTALLERS',
    'JavaInstaller',
    'LaravelInstaller',
    'NodeInstaller',
    'PythonInstaller',
    'RemixInstaller',
    'StackInstaller',
    'get_installer',
]
