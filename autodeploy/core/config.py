"""Runtime configuration and host settings for autodeploy."""
import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _running_as_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


@dataclass
class DeployerConfig:
    """Host layout and defaults used by the installers.

    Attributes:
        systemd_dir: Directory that receives generated unit files
        nginx_sites_available: Nginx vhost directory
        nginx_sites_enabled: Directory holding enabled vhost symlinks
        apache_sites_available: Apache vhost directory
        php_fpm_socket_dir: Directory holding php<version>-fpm.sock
        gunicorn_workers: Worker count for gunicorn-served apps (default: 3)
        python_port: Bind port for Python web apps (default: 8000)
        node_port: Default port for Node.js and Remix apps (default: 3000)
        java_bin: Java executable used in ExecStart
        use_sudo: Prefix privileged commands with sudo
        command_timeout: Timeout in seconds for a single external command
    """

    systemd_dir: str = "/etc/systemd/system"
    nginx_sites_available: str = "/etc/nginx/sites-available"
    nginx_sites_enabled: str = "/etc/nginx/sites-enabled"
    apache_sites_available: str = "/etc/apache2/sites-available"
    php_fpm_socket_dir: str = "/var/run/php"

    gunicorn_workers: int = 3
    python_port: int = 8000
    node_port: int = 3000
    java_bin: str = "/usr/bin/java"

    use_sudo: bool = True
    command_timeout: int = 1800  # builds can take a while

    @classmethod
    def from_env(cls) -> "DeployerConfig":
        """Create config from environment variables.

        Environment variables:
            AUTODEPLOY_SYSTEMD_DIR, AUTODEPLOY_NGINX_SITES_AVAILABLE,
            AUTODEPLOY_NGINX_SITES_ENABLED, AUTODEPLOY_APACHE_SITES_AVAILABLE,
            AUTODEPLOY_PHP_FPM_SOCKET_DIR, AUTODEPLOY_GUNICORN_WORKERS,
            AUTODEPLOY_PYTHON_PORT, AUTODEPLOY_NODE_PORT, AUTODEPLOY_JAVA_BIN,
            AUTODEPLOY_USE_SUDO, AUTODEPLOY_COMMAND_TIMEOUT

        Returns:
            DeployerConfig instance with values from environment or defaults
        """
        return cls(
            systemd_dir=os.getenv("AUTODEPLOY_SYSTEMD_DIR", cls.systemd_dir),
            nginx_sites_available=os.getenv(
                "AUTODEPLOY_NGINX_SITES_AVAILABLE", cls.nginx_sites_available
            ),
            nginx_sites_enabled=os.getenv(
                "AUTODEPLOY_NGINX_SITES_ENABLED", cls.nginx_sites_enabled
            ),
            apache_sites_available=os.getenv(
                "AUTODEPLOY_APACHE_SITES_AVAILABLE", cls.apache_sites_available
            ),
            php_fpm_socket_dir=os.getenv(
                "AUTODEPLOY_PHP_FPM_SOCKET_DIR", cls.php_fpm_socket_dir
            ),
            gunicorn_workers=int(
                os.getenv("AUTODEPLOY_GUNICORN_WORKERS", cls.gunicorn_workers)
            ),
            python_port=int(os.getenv("AUTODEPLOY_PYTHON_PORT", cls.python_port)),
            node_port=int(os.getenv("AUTODEPLOY_NODE_PORT", cls.node_port)),
            java_bin=os.getenv("AUTODEPLOY_JAVA_BIN", cls.java_bin),
            use_sudo=_env_bool("AUTODEPLOY_USE_SUDO", not _running_as_root()),
            command_timeout=int(
                os.getenv("AUTODEPLOY_COMMAND_TIMEOUT", cls.command_timeout)
            ),
        )


_config: Optional[DeployerConfig] = None


def get_config() -> DeployerConfig:
    """Get the global configuration, creating it from the environment if unset."""
    global _config
    if _config is None:
        _config = DeployerConfig.from_env()
    return _config


def set_config(config: Optional[DeployerConfig]):
    """Set (or with None, reset) the global configuration."""
    global _config
    _config = config
