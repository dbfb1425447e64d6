from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_marshmallow import Marshmallow
from flask_mail import Mail
from sqlalchemy import MetaData

# Stable names for unnamed indexes/keys so autogenerated migrations can drop them later
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

db = SQLAlchemy(metadata=MetaData(naming_convention=NAMING_CONVENTION))
# Batch mode lets the same migrations alter constraints on SQLite
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
ma = Marshmallow()
mail = Mail()
