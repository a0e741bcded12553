"""Workspace access: sandboxed files and project analysis."""

from codechat.workspace.analyzer import ProjectAnalyzer, ProjectContext
from codechat.workspace.files import (
    FileInfo,
    ScopedFileAccessor,
    SearchMatch,
    SearchResult,
    expand_braces,
)

__all__ = [
    "ScopedFileAccessor",
    "FileInfo",
    "SearchMatch",
    "SearchResult",
    "expand_braces",
    "ProjectAnalyzer",
    "ProjectContext",
]
