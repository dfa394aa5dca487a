from sqlalchemy import inspect

from models import db
from models.employee import Role

DEFAULT_ROLES = ["EMPLOYEE", "ADMIN"]

def seed_roles():
    # before the first `flask db upgrade` there is nothing to seed into
    if not inspect(db.engine).has_table(Role.__tablename__):
        return
    existing = {r.name for r in Role.query.all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()
