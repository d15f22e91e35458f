from .user import User
from .team import Team, TeamMember
from .task import Task, TaskComment, task_assignees

# every model must be imported here so Base.metadata sees it
