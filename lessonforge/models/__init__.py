from lessonforge.models.user import User, UserRole
from lessonforge.models.lesson import Lesson
