from pagesmith.models.enums import ChangeType, FileType
from pagesmith.models.file_change import FileChange
from pagesmith.models.project import Project
from pagesmith.models.project_file import ProjectFile
from pagesmith.models.version import FileSnapshot, ProjectVersion

__all__ = [
    "ChangeType",
    "FileChange",
    "FileSnapshot",
    "FileType",
    "Project",
    "ProjectFile",
    "ProjectVersion",
]
