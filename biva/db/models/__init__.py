from biva.db.models.role import Role, user_roles
from biva.db.models.user import User
from biva.db.models.property import Property
from biva.db.models.visit import Visit
from biva.db.models.contract import Contract
from biva.db.models.notification import Notification

__all__ = ["Role", "user_roles", "User", "Property", "Visit", "Contract", "Notification"]
