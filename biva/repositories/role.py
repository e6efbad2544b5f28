from sqlalchemy.orm import Session

from biva.db.models.role import Role as RoleModel


def get_all_roles(db: Session) -> list[RoleModel]:
    return db.query(RoleModel).order_by(RoleModel.id).all()


def get_roles_by_names(db: Session, names: list[str]) -> list[RoleModel]:
    return db.query(RoleModel).filter(RoleModel.name.in_(names)).order_by(RoleModel.id).all()
