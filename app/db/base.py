from app.db.base_class import Base

# Import ALL models so SQLAlchemy registers them
from app.models.student import Student  # noqa: F401
from app.models.follow_relation import FollowRelation  # noqa: F401
from app.models.cache_entry import CacheEntry  # noqa: F401
