# obratrack/core/exceptions.py

class BaseAppException(Exception):
    """Базовый класс для всех кастомных исключений приложения."""
    def __init__(self, message: str = "App exception"):
        super().__init__(message)

# ==== Валидация ====

class ValidationError(BaseAppException):
    """Общая ошибка валидации."""
    def __init__(self, message: str = "Validation error"):
        super().__init__(message)

class ProjectValidationError(ValidationError):
    """Ошибка валидации проекта."""
    def __init__(self, message: str = "Project validation error"):
        super().__init__(message)

class StageValidationError(ValidationError):
    """Ошибка валидации этапа."""
    def __init__(self, message: str = "Stage validation error"):
        super().__init__(message)

# ==== NotFound ====

class NotFoundError(BaseAppException):
    """Ошибка отсутствия ресурса."""
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)

class ProjectNotFound(NotFoundError):
    def __init__(self, message: str = "Project not found"):
        super().__init__(message)

class StageNotFound(NotFoundError):
    def __init__(self, message: str = "Stage not found"):
        super().__init__(message)

class StageTemplateNotFound(NotFoundError):
    def __init__(self, message: str = "Stage template not found"):
        super().__init__(message)

class UserNotFound(NotFoundError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message)

class ClientNotFound(NotFoundError):
    def __init__(self, message: str = "Client not found"):
        super().__init__(message)

class TagNotFound(NotFoundError):
    def __init__(self, message: str = "Tag not found"):
        super().__init__(message)

class TagAssignmentNotFound(NotFoundError):
    def __init__(self, message: str = "Tag is not assigned to this stage"):
        super().__init__(message)

class CommentNotFound(NotFoundError):
    def __init__(self, message: str = "Comment not found"):
        super().__init__(message)

# ==== Конфликты ====

class ConflictError(BaseAppException):
    """Запрос нарушает правило предметной области или уникальность."""
    def __init__(self, message: str = "Conflict"):
        super().__init__(message)

class StageSequenceError(ConflictError):
    """Нельзя создать этап, пока предыдущий не завершён."""
    def __init__(self, message: str = "Previous stage must be completed before creating a new one"):
        super().__init__(message)

class StageAlreadyStarted(ConflictError):
    """Этап уже начат (или не существует — по числу затронутых строк их не различить)."""
    def __init__(self, message: str = "Stage already started or does not exist"):
        super().__init__(message)

class DuplicateUserEmail(ConflictError):
    def __init__(self, message: str = "A user with this email already exists"):
        super().__init__(message)

class DuplicateTagName(ConflictError):
    def __init__(self, message: str = "A tag with this name already exists"):
        super().__init__(message)

class DuplicateTagAssignment(ConflictError):
    def __init__(self, message: str = "Tag is already assigned to this stage"):
        super().__init__(message)

# ==== Ссылочная целостность ====

class ReferentialIntegrityError(ConflictError):
    """Удаление заблокировано зависимыми строками."""
    def __init__(self, message: str = "Entity is still referenced"):
        super().__init__(message)

class UserInUseError(ReferentialIntegrityError):
    def __init__(self, message: str = "User cannot be deleted because stages are assigned to them"):
        super().__init__(message)
