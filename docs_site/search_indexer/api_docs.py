"""Run the external API documentation generator for a project version."""
from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .models import Project, ProjectVersion

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """<?php

use Sami\\RemoteRepository\\GitHubRemoteRepository;

return new Sami\\Sami('{code_dir}', [
    'build_dir' => '{build_dir}',
    'cache_dir' => '{cache_dir}',
    'remote_repository' => new GitHubRemoteRepository('{remote_repository}', '{repository_path}'),
    'versions' => '{versions}',
]);
"""

CONFIG_FILENAME = "sami.php"

Runner = Callable[..., Any]


@dataclass
class GeneratorConfig:
    code_dir: str
    build_dir: str
    cache_dir: str
    remote_repository: str
    repository_path: str
    versions: str

    def render(self) -> str:
        return CONFIG_TEMPLATE.format(
            code_dir=self.code_dir,
            build_dir=self.build_dir,
            cache_dir=self.cache_dir,
            remote_repository=self.remote_repository,
            repository_path=self.repository_path,
            versions=self.versions,
        )


class ApiDocsBuilder:
    def __init__(
        self,
        projects_path: Path,
        source_path: Path,
        *,
        organization: str = "doctrine",
        generator: Sequence[str] | None = None,
        runner: Runner = subprocess.run,
    ) -> None:
        self.projects_path = projects_path
        self.source_path = source_path
        self.organization = organization
        self.generator = list(generator) if generator else [
            "php",
            str(source_path.parent / "sami.phar"),
        ]
        self.runner = runner

    def repository_path(self, project: Project) -> Path:
        return self.projects_path / project.repository_name

    def build_config(self, project: Project, version: ProjectVersion) -> GeneratorConfig:
        repo_path = self.repository_path(project)
        return GeneratorConfig(
            code_dir=f"{repo_path}{project.code_path}",
            build_dir=str(self.source_path / "api" / project.slug / version.slug),
            cache_dir=str(repo_path / "cache"),
            remote_repository=f"{self.organization}/{project.repository_name}",
            repository_path=str(repo_path),
            versions=version.branch_name,
        )

    def build_api_docs(self, project: Project, version: ProjectVersion) -> None:
        """Write the generator config, run the generator, always remove the config.

        A non-zero generator exit raises ``subprocess.CalledProcessError``.
        """
        config = self.build_config(project, version)
        config_path = self.repository_path(project) / CONFIG_FILENAME
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config.render(), encoding="utf-8")
        command = [*self.generator, "update", str(config_path), "--verbose"]
        logger.info("Building API docs for %s %s", project.slug, version.slug)
        try:
            self.runner(command, check=True)
        finally:
            config_path.unlink(missing_ok=True)
