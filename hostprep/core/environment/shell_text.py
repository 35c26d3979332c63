"""
Shell text builders shared by the subsystem-side components and the CLI.

Everything here returns plain command text for a bash shell inside the
subsystem. Values that come from configuration or the operator are
quoted with :func:`shlex.quote`; nothing is interpolated raw.
"""

from __future__ import annotations

import shlex

CUDA_BIN_DIR = "/usr/local/cuda-12.8/bin"

# Drop Windows directories that WSL appends to PATH.
_LINUX_ONLY_PATH = "$(echo \"$PATH\" | tr ':' '\\n' | grep -v '/mnt/c' | paste -sd ':' -)"


def quote_args(args) -> str:
    """Quote each argument for bash and join with spaces."""
    return " ".join(shlex.quote(str(a)) for a in args)


def shell_path(path: str) -> str:
    """Quote a path but leave a leading ``~/`` for the shell to expand."""
    if path == "~":
        return "~"
    if path.startswith("~/"):
        return "~/" + shlex.quote(path[2:])
    return shlex.quote(path)


def apt_proxy_options(proxy_url: str | None) -> str:
    """``-o Acquire::http(s)::proxy=...`` options, or an empty string."""
    if not proxy_url:
        return ""
    quoted = shlex.quote(proxy_url)
    return f"-o Acquire::http::proxy={quoted} -o Acquire::https::proxy={quoted}"


def apt_install(packages, proxy_url: str | None = None) -> str:
    options = apt_proxy_options(proxy_url)
    prefix = f"apt-get {options} " if options else "apt-get "
    return (
        f"{prefix}update && DEBIAN_FRONTEND=noninteractive "
        f"{prefix}install -y {quote_args(packages)}"
    )


def http_proxy_env(proxy_url: str | None) -> str:
    """``HTTP_PROXY=... HTTPS_PROXY=... `` prefix (trailing space), or ''."""
    if not proxy_url:
        return ""
    quoted = shlex.quote(proxy_url)
    return f"HTTP_PROXY={quoted} HTTPS_PROXY={quoted} "


def all_proxy_env(proxy_url: str | None) -> str:
    """``ALL_PROXY=... `` prefix for git, or ''."""
    if not proxy_url:
        return ""
    return f"ALL_PROXY={shlex.quote(proxy_url)} "


def build_runtime_command(
    project_dir: str,
    executable: str,
    verb: str,
    args=(),
    proxy_url: str | None = None,
) -> str:
    """Command text that runs ``<executable> <verb> <args>`` in the project venv.

    ``prakasa run --model x`` becomes::

        cd ~/prakasa && export PATH=/usr/local/cuda-12.8/bin:<PATH without /mnt/c>
            && source ./venv/bin/activate && prakasa run --model x
    """
    parts = [
        f"cd {shell_path(project_dir)}",
        f"export PATH={CUDA_BIN_DIR}:{_LINUX_ONLY_PATH}",
        "source ./venv/bin/activate",
    ]
    tail = f"{http_proxy_env(proxy_url)}{quote_args([executable, verb, *args])}"
    parts.append(tail)
    return " && ".join(parts)
