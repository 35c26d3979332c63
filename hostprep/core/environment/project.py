"""
Project deployment — clone, update and install the inference runtime.

The project lives in a git checkout inside the subsystem with its own
virtualenv. "Installed" means the package is listed by the venv's pip;
"up to date" means the checkout has no divergence from the remote
branch after a fetch.

Install has two modes:
    update — installed with upstream changes: pull, then reinstall
    fresh  — not installed: clone (or repair the checkout), create the
             venv, install, and put the CUDA toolkit on PATH
"""

from __future__ import annotations

import logging

from hostprep.core.environment import shell_text
from hostprep.core.environment.base import EnvironmentComponentBase
from hostprep.core.environment.sequence import CommandStep, run_command_sequence
from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
)

logger = logging.getLogger(__name__)

UP_TO_DATE_MESSAGE = "Project is already installed and up to date"
UPDATE_AVAILABLE_MESSAGE = "Project is installed but has git updates available"


class ProjectDeployer(EnvironmentComponentBase):
    component_type = EnvironmentComponent.PROJECT_DEPLOYMENT

    # ── Command text ────────────────────────────────────────────

    @property
    def _dir(self) -> str:
        return shell_text.shell_path(self.context.project_dir)

    def _git(self, args: str) -> str:
        proxy = shell_text.all_proxy_env(self.context.proxy_url)
        return f"cd {self._dir} && {proxy}git {args}"

    def _clone_command(self) -> str:
        proxy = shell_text.all_proxy_env(self.context.proxy_url)
        source, target = self.context.project_repo_url, self.context.project_dir
        return (
            f"cd ~ && {proxy}git clone "
            f"{shell_text.quote_args([source])} {shell_text.shell_path(target)}"
        )

    def _install_command(self) -> str:
        proxy = shell_text.http_proxy_env(self.context.proxy_url)
        return (
            f"cd {self._dir} && ([ -d ./venv ] || python3 -m venv ./venv) "
            f"&& source ./venv/bin/activate && {proxy}pip install -e '.[gpu]'"
        )

    # ── Probes ──────────────────────────────────────────────────

    def is_installed(self) -> bool:
        package = shell_text.quote_args([self.context.project_package])
        probe = self.executor.subsystem(
            f"cd {self._dir} && [ -d ./venv ] && source ./venv/bin/activate "
            f"&& pip list | grep {package}"
        )
        return probe.ok and bool(probe.stdout.strip())

    def has_updates(self) -> bool:
        """Whether the checkout is behind or ahead of origin.

        Any failure along the way (not a repository, offline) counts
        as "no updates".
        """
        inside = self.executor.subsystem(
            f"cd {self._dir} && git rev-parse --is-inside-work-tree 2>/dev/null"
        )
        if not inside.ok:
            return False

        fetched = self.executor.subsystem(self._git("fetch origin"), timeout=60)
        if not fetched.ok:
            logger.warning("[ENV] git fetch failed, assuming no updates")
            return False

        branch = shell_text.quote_args([f"origin/{self.context.project_branch}"])
        counted = self.executor.subsystem(
            f"cd {self._dir} && git rev-list HEAD...{branch} --count 2>/dev/null"
        )
        if not counted.ok:
            return False
        try:
            return int(counted.stdout.strip()) > 0
        except ValueError:
            logger.warning("[ENV] Unexpected rev-list output: %r", counted.stdout)
            return False

    def _checkout_state(self) -> str:
        """``missing``, ``repository`` or ``not_repository``."""
        listed = self.executor.subsystem(
            f"ls -la {self._dir}/.git 2>/dev/null || echo 'not found'"
        )
        if not listed.ok or "not found" in listed.stdout:
            exists = self.executor.subsystem(f"[ -e {self._dir} ]")
            return "not_repository" if exists.ok else "missing"
        branch = self.executor.subsystem(
            f"cd {self._dir} && git branch 2>/dev/null || echo 'not git'"
        )
        if branch.ok and "not git" not in branch.stdout:
            return "repository"
        return "not_repository"

    # ── Component contract ──────────────────────────────────────

    def check(self) -> ComponentResult:
        self._log_start("Checking")
        if not self.is_installed():
            result = self._failure(
                "Project is not installed", FailureCode.PROJECT_NOT_INSTALLED,
            )
        elif self.has_updates():
            result = self._warning(UPDATE_AVAILABLE_MESSAGE)
        else:
            result = self._skipped(UP_TO_DATE_MESSAGE)
        self._log_result("Checking", result)
        return result

    def install(self) -> ComponentResult:
        self._log_start("Installing")
        installed = self.is_installed()
        if installed and not self.has_updates():
            result = self._skipped(UP_TO_DATE_MESSAGE)
            self._log_result("Installing", result)
            return result

        if installed:
            logger.info("[ENV] Project has updates available, updating...")
            steps = self._update_steps()
        else:
            logger.info("[ENV] Installing project in the subsystem...")
            steps = self._fresh_steps()

        result = run_command_sequence(
            steps, self.executor, self._relay,
            self.component_type, FailureCode.PROJECT_NOT_INSTALLED,
            "Project installation",
        )
        if not result.failed:
            result = self._verify(update_mode=installed)
        self._log_result("Installing", result)
        return result

    def _update_steps(self) -> list[CommandStep]:
        return [
            CommandStep("update_project", self._git("pull"), timeout=300),
            CommandStep(
                "install_project", self._install_command(),
                timeout=1800, realtime=True,
            ),
        ]

    def _fresh_steps(self) -> list[CommandStep]:
        state = self._checkout_state()
        steps: list[CommandStep] = []
        if state == "repository":
            logger.info("[ENV] Project directory exists, updating with git pull...")
            steps.append(CommandStep("update_project", self._git("pull"), timeout=300))
        else:
            if state == "not_repository":
                logger.info(
                    "[ENV] Project directory is not a git repository, "
                    "removing and cloning..."
                )
                steps.append(CommandStep("remove_old_project", f"rm -rf {self._dir}", timeout=60))
            steps.append(CommandStep("clone_project", self._clone_command(), timeout=600))

        options = shell_text.apt_proxy_options(self.context.proxy_url)
        apt = f"apt-get {options}" if options else "apt-get"
        steps.append(CommandStep(
            "install_python3_venv",
            f"{apt} update && {apt} install -y python3-venv",
            timeout=300,
        ))
        steps.append(CommandStep(
            "install_project", self._install_command(),
            timeout=1800, realtime=True,
        ))
        cuda = shell_text.CUDA_BIN_DIR
        steps.append(CommandStep(
            "add_cuda_env",
            f"grep -q '{cuda}' ~/.bashrc || "
            f"echo 'export PATH={cuda}:$PATH' >> ~/.bashrc",
            timeout=30,
        ))
        return steps

    def _verify(self, update_mode: bool) -> ComponentResult:
        if self.is_installed():
            return self._success(
                "Project updated successfully" if update_mode
                else "Project installed successfully"
            )
        return self._failure(
            "Project update completed but verification failed" if update_mode
            else "Project installation completed but verification failed",
            FailureCode.PROJECT_NOT_INSTALLED,
        )
