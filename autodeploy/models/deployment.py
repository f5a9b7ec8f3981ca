"""Deployment request and generated-artifact models."""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

REPO_URL_PATTERNS = (
    re.compile(r"^https?://.*\.git$"),
    re.compile(r"^git@.*:.*/.*\.git$"),
)
APP_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.@-]*$")
DOMAIN_PATTERN = re.compile(
    r"^(?=.{1,253}$)([A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$"
)


class Stack(str, Enum):
    """Technology stacks autodeploy knows how to install."""

    NODEJS = "nodejs"
    PYTHON = "python"
    JAVA = "java"
    LARAVEL = "laravel"
    REMIX = "remix"

    @property
    def label(self) -> str:
        return _STACK_LABELS[self]


_STACK_LABELS = {
    Stack.NODEJS: "Node.js",
    Stack.PYTHON: "Python",
    Stack.JAVA: "Java/Spring",
    Stack.LARAVEL: "Laravel",
    Stack.REMIX: "Remix",
}


class WebServer(str, Enum):
    NGINX = "nginx"
    APACHE = "apache"
    NONE = "none"


class DatabaseEngine(str, Enum):
    """Laravel DB_CONNECTION values."""

    MYSQL = "mysql"
    PGSQL = "pgsql"
    SQLITE = "sqlite"

    @property
    def label(self) -> str:
        return {"mysql": "MySQL", "pgsql": "PostgreSQL", "sqlite": "SQLite"}[self.value]


def repo_url_error(url: str) -> Optional[str]:
    """Return an error message for an invalid git URL, or None when valid."""
    if any(pattern.match(url) for pattern in REPO_URL_PATTERNS):
        return None
    return "Invalid git repository URL. It should end with .git"


def app_name_error(name: str) -> Optional[str]:
    if APP_NAME_PATTERN.match(name):
        return None
    return (
        "Invalid application name. Use letters, digits, '.', '_', '-' or '@' "
        "(it becomes the systemd unit name)"
    )


def domain_error(domain: str) -> Optional[str]:
    if "://" in domain:
        return "Enter the domain without a scheme (example.com, not https://example.com)"
    if not DOMAIN_PATTERN.match(domain):
        return f"Invalid domain name: {domain}"
    return None


def port_error(value: str) -> Optional[str]:
    if not value.isdigit() or not 1 <= int(value) <= 65535:
        return "Port must be a number between 1 and 65535"
    return None


class DeploymentRequest(BaseModel):
    """Everything an installer needs to deploy one application."""

    model_config = ConfigDict(extra='forbid')

    repo_url: str
    app_name: str
    deploy_dir: str
    stack: Optional[Stack] = Field(None, description="None means detect after cloning")
    branch: Optional[str] = None
    domain: Optional[str] = None
    port: Optional[int] = Field(None, ge=1, le=65535)
    web_server: WebServer = WebServer.NGINX
    tls: Optional[bool] = Field(None, description="None means the stack default")
    email: Optional[str] = None

    # Laravel database settings
    database: Optional[DatabaseEngine] = None
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None

    # Python entry point override
    app_file: Optional[str] = None

    @field_validator('repo_url')
    @classmethod
    def validate_repo_url(cls, v):
        v = v.strip()
        error = repo_url_error(v)
        if error:
            raise ValueError(f"{error}. Got: {v}")
        return v

    @field_validator('app_name')
    @classmethod
    def validate_app_name(cls, v):
        v = v.strip()
        error = app_name_error(v)
        if error:
            raise ValueError(error)
        return v

    @field_validator('deploy_dir')
    @classmethod
    def validate_deploy_dir(cls, v):
        if not v or not v.strip():
            raise ValueError("Deployment directory cannot be empty")
        return v.strip()

    @field_validator('domain')
    @classmethod
    def validate_domain(cls, v):
        if v is None:
            return v
        v = v.strip()
        error = domain_error(v)
        if error:
            raise ValueError(error)
        return v


@dataclass
class ServiceUnit:
    """A systemd service unit for a deployed application."""

    name: str
    description: str
    user: str
    working_directory: str
    exec_start: str
    environment: Dict[str, str] = field(default_factory=dict)
    unit_type: Optional[str] = None
    restart: str = "always"
    restart_sec: Optional[int] = None
    after: str = "network.target"

    @property
    def filename(self) -> str:
        return f"{self.name}.service"


@dataclass
class SiteConfig:
    """A web server virtual host for a deployed application.

    ``kind`` is either ``proxy`` (forward to ``port`` on localhost) or ``php``
    (serve ``document_root`` through php-fpm on ``php_socket``).
    """

    app_name: str
    domain: str
    web_server: WebServer = WebServer.NGINX
    kind: str = "proxy"
    port: Optional[int] = None
    document_root: Optional[str] = None
    php_socket: Optional[str] = None
    static_alias: Optional[str] = None
    static_root: Optional[str] = None
    tls: bool = False

    def __post_init__(self):
        if self.kind not in {"proxy", "php"}:
            raise ValueError(f"Unknown site kind: {self.kind}")
        if self.kind == "proxy" and not self.port:
            raise ValueError("Proxy sites require a port")
        if self.kind == "php" and not (self.document_root and self.php_socket):
            raise ValueError("PHP sites require document_root and php_socket")
        if bool(self.static_alias) != bool(self.static_root):
            raise ValueError("static_alias and static_root must be given together")


@dataclass
class DeploymentResult:
    """Summary of a finished deployment."""

    app_name: str
    stack: Stack
    deploy_dir: str
    service: Optional[str] = None
    url: Optional[str] = None
    commit: Optional[str] = None
    status_command: Optional[str] = None
    notes: List[str] = field(default_factory=list)
