# Import all models here so Alembic's env.py can discover them via Base.metadata
from app.models.base import Base  # noqa: F401
from app.models.supplier import Supplier  # noqa: F401
from app.models.template import ParsingTemplate  # noqa: F401
