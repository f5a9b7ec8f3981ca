"""Nginx/Apache virtual host generation and activation."""
import re
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

from autodeploy.core.config import DeployerConfig, get_config
from autodeploy.core.errors import CommandError, DeployError
from autodeploy.core.logger import get_logger
from autodeploy.core.runner import CommandRunner
from autodeploy.core.template_loader import TemplateLoader, get_template_loader
from autodeploy.models.deployment import SiteConfig, WebServer
from autodeploy.services.certbot import CertbotManager

logger = get_logger(__name__)

TEMPLATES = {
    (WebServer.NGINX, "proxy"): "nginx_proxy.conf.j2",
    (WebServer.NGINX, "php"): "nginx_php.conf.j2",
    (WebServer.APACHE, "proxy"): "apache_proxy.conf.j2",
    (WebServer.APACHE, "php"): "apache_php.conf.j2",
}


def upstream_name(app_name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "_", app_name) + "_upstream"


def render_site(
    site: SiteConfig,
    cert: Optional[Dict[str, str]] = None,
    loader: Optional[TemplateLoader] = None,
) -> str:
    """Render the virtual host for a site.

    Args:
        site: Site definition
        cert: Certificate paths, required when site.tls is set
        loader: Template loader (defaults to the packaged templates)
    """
    template = TEMPLATES.get((site.web_server, site.kind))
    if template is None:
        raise DeployError(f"No {site.kind} template for web server '{site.web_server.value}'")

    if site.tls and cert is None:
        cert = CertbotManager.certificate_paths(site.domain)

    loader = loader or get_template_loader()
    return loader.render(
        template,
        site=site,
        cert=cert or {},
        upstream=upstream_name(site.app_name),
    )


class SiteManager(ABC):
    """Writes a vhost, enables it, validates and reloads the server."""

    certbot_plugin: str = ""

    def __init__(self, runner: CommandRunner, config: Optional[DeployerConfig] = None):
        self.runner = runner
        self.config = config or get_config()

    @abstractmethod
    def site_path(self, site: SiteConfig) -> str:
        pass

    @abstractmethod
    def enable(self, site: SiteConfig) -> None:
        pass

    @abstractmethod
    def disable(self, site: SiteConfig) -> None:
        pass

    @abstractmethod
    def test_config(self) -> None:
        """Validate the server configuration, raising DeployError on failure."""
        pass

    @abstractmethod
    def reload(self) -> None:
        pass

    def prepare(self, site: SiteConfig) -> None:
        """Hook for server-specific preparation (modules, directories)."""
        return None

    def publish(self, site: SiteConfig, cert: Optional[Dict[str, str]] = None) -> str:
        """Write, enable, test and reload a site.

        Returns:
            Path of the written configuration file
        """
        path = self.site_path(site)
        logger.info(f"Setting up {site.web_server.value} configuration at {path}")

        self.prepare(site)
        self.runner.write_file(path, render_site(site, cert), sudo=True)
        self.enable(site)
        try:
            self.test_config()
        except DeployError:
            # a broken vhost left enabled would fail every later reload
            logger.error(f"Disabling {site.app_name} after the failed configuration test")
            self.disable(site)
            raise
        self.reload()
        logger.info(f"✓ {site.web_server.value} configuration for {site.domain} is live")
        return path

    def publish_with_tls(
        self,
        site: SiteConfig,
        certbot: CertbotManager,
        email: Optional[str] = None,
    ) -> str:
        """Publish a site, obtaining a certificate first when TLS is requested.

        The plain-HTTP variant goes live first so certbot can answer the
        challenge, then the TLS variant replaces it.
        """
        if not site.tls:
            return self.publish(site)

        self.publish(replace(site, tls=False))
        cert = certbot.obtain(site.domain, email=email, plugin=self.certbot_plugin)
        return self.publish(site, cert)


class NginxSiteManager(SiteManager):
    certbot_plugin = "nginx"

    def site_path(self, site: SiteConfig) -> str:
        return str(Path(self.config.nginx_sites_available) / site.app_name)

    def enable(self, site: SiteConfig) -> None:
        self.runner.symlink(self.site_path(site), self.config.nginx_sites_enabled + "/", sudo=True)

    def disable(self, site: SiteConfig) -> None:
        link = Path(self.config.nginx_sites_enabled) / site.app_name
        self.runner.run(['rm', '-f', str(link)], sudo=True)

    def test_config(self) -> None:
        try:
            self.runner.run(['nginx', '-t'], sudo=True)
        except CommandError as e:
            raise DeployError(f"Error in Nginx configuration. Please check the syntax.\n{e.stderr}") from e

    def reload(self) -> None:
        self.runner.run(['systemctl', 'reload', 'nginx'], sudo=True)


class ApacheSiteManager(SiteManager):
    certbot_plugin = "apache"

    PROXY_MODULES = ["proxy", "proxy_http", "headers", "rewrite"]
    PHP_MODULES = ["proxy_fcgi", "setenvif", "rewrite"]

    def site_path(self, site: SiteConfig) -> str:
        return str(Path(self.config.apache_sites_available) / f"{site.app_name}.conf")

    def modules_for(self, site: SiteConfig) -> List[str]:
        modules = list(self.PROXY_MODULES if site.kind == "proxy" else self.PHP_MODULES)
        if site.tls:
            modules.append("ssl")
            if "headers" not in modules:
                modules.append("headers")
        return modules

    def prepare(self, site: SiteConfig) -> None:
        self.runner.run(['a2enmod'] + self.modules_for(site), sudo=True)

    def enable(self, site: SiteConfig) -> None:
        self.runner.run(['a2ensite', f"{site.app_name}.conf"], sudo=True)

    def disable(self, site: SiteConfig) -> None:
        self.runner.run(['a2dissite', f"{site.app_name}.conf"], sudo=True)

    def test_config(self) -> None:
        try:
            self.runner.run(['apachectl', 'configtest'], sudo=True)
        except CommandError as e:
            raise DeployError(f"Error in Apache configuration. Please check the syntax.\n{e.stderr}") from e

    def reload(self) -> None:
        self.runner.run(['systemctl', 'reload', 'apache2'], sudo=True)


def get_site_manager(
    web_server: WebServer,
    runner: CommandRunner,
    config: Optional[DeployerConfig] = None,
) -> SiteManager:
    """Return the manager for a web server."""
    if web_server == WebServer.NGINX:
        return NginxSiteManager(runner, config)
    if web_server == WebServer.APACHE:
        return ApacheSiteManager(runner, config)
    raise DeployError("No web server selected for this site")
