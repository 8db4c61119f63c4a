import os
import re

APPDATA_BASE = os.getenv("APPDATA_BASE", "/opt/appdata")
SHARED_GROUP = os.getenv("SHARED_GROUP", "docker")
WORKSPACE_DIRNAME = os.getenv("WORKSPACE_DIRNAME", "komodo")
SETUP_WORKSPACE_DIRNAME = os.getenv("SETUP_WORKSPACE_DIRNAME", "docker")
SETUP_DATA_DIRNAME = os.getenv("SETUP_DATA_DIRNAME", "docker")
STACKS_DIRNAME = "stacks"

DATA_OWNER = "root"
WORKSPACE_MODE = 0o775
DATA_MODE = 0o2775  # setgid: children inherit the shared group

COMPOSE_FILENAME = "docker-compose.yml"
ENV_FILENAME = ".env"
DATA_SUBDIR = "data"

# Letters, numbers, dots, underscores and dashes; matched with fullmatch
STACK_NAME_RE = re.compile(r"[A-Za-z0-9._-]+")

PACKAGE_MANAGER = os.getenv("PACKAGE_MANAGER", "dnf")
DOCKER_REPO_URL = os.getenv(
    "DOCKER_REPO_URL", "https://download.docker.com/linux/centos/docker-ce.repo"
)
DOCKER_REPO_ID = "docker-ce"
DOCKER_SERVICE = "docker"
CONFLICTING_PACKAGES = (
    "docker",
    "docker-client",
    "docker-client-latest",
    "docker-common",
    "docker-latest",
    "docker-latest-logrotate",
    "docker-logrotate",
    "docker-engine",
)
REPO_TOOL_PACKAGES = ("dnf-plugins-core",)
ENGINE_PACKAGES = (
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
)

DOCKER_HOST = os.getenv("DOCKER_HOST", "unix:///var/run/docker.sock")
LOG_LEVEL = os.getenv("PROVISIONER_LOG_LEVEL", "WARNING").upper()
