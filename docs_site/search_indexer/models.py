"""Project and version identities used when building records."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Project:
    slug: str
    docs_slug: str
    short_name: str
    repository_name: str
    code_path: str = "/lib"


@dataclass(frozen=True)
class ProjectVersion:
    slug: str
    branch_name: str
