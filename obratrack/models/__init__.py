from .user import User
from .client import Client
from .project import Project
from .stage_template import StageTemplate
from .stage import Stage
from .tag import Tag, stage_tags
from .comment import Comment

# все модели регистрируются в Base.metadata через этот импорт
