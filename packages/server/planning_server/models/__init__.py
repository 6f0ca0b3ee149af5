# SQLModel definitions, imported here so metadata is populated before create_all.
from .base import IDMixin, TimestampMixin  # noqa: F401
from .project import Project  # noqa: F401
from .task import Task  # noqa: F401
from .dependency import TaskDependency  # noqa: F401
from .blocker import Blocker, BlockerImpact  # noqa: F401
from .decision import Decision  # noqa: F401
from .file_mapping import FileMapping  # noqa: F401
from .context_data import ContextData  # noqa: F401
